"""Tests for SharePoint path formatting and name validation."""

import pytest

from sitestore.core.sharepoint.exceptions import InvalidNameError
from sitestore.core.sharepoint.paths import (
    FORBIDDEN_NAME_CHARS,
    encode_name,
    format_path,
    odata_literal,
    validate_name,
)

SITE = "/sites/Team"


class TestFormatPath:
    """Tests for format_path."""

    def test_prepends_site_prefix(self):
        """Site-relative paths are rooted under the site."""
        assert format_path("/Shared Documents", SITE) == "/sites/Team/Shared%20Documents"

    def test_inserts_separator_for_bare_path(self):
        """A path without a leading slash still gets a separator."""
        assert format_path("Shared Documents/a", SITE) == "/sites/Team/Shared%20Documents/a"

    def test_keeps_server_relative_path(self):
        """Paths already under the site are not prefixed again."""
        assert format_path("/sites/Team/Docs", SITE) == "/sites/Team/Docs"

    @pytest.mark.parametrize(
        "path",
        [
            "/Shared Documents/Reports 2026",
            "Docs/ünïcödé name",
            "/sites/Team/Docs/100% done",
            "/Docs/a#b",
            "/Docs/O'Brien",
            "",
        ],
    )
    def test_is_idempotent(self, path):
        """Formatting an already formatted path returns it unchanged."""
        once = format_path(path, SITE)
        assert format_path(once, SITE) == once
        assert once.startswith(SITE)

    def test_encodes_fragment_and_query_markers(self):
        """'#' and '?' cannot leak out of the path part of a URL."""
        formatted = format_path("/Docs/a#b?c", SITE)
        assert "#" not in formatted
        assert "?" not in formatted
        assert formatted.endswith("a%23b%3Fc")

    def test_keeps_reserved_characters_like_encode_uri(self):
        """Reserved separators are left as-is."""
        assert format_path("/Docs/a(1);b,c", SITE) == "/sites/Team/Docs/a(1);b,c"

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("Shared Documents/a", "/Shared%20Documents/a"),
            ("/Shared Documents/a", "/Shared%20Documents/a"),
            ("", "/"),
        ],
    )
    def test_root_site_paths_are_server_relative(self, path, expected):
        """With no site prefix, paths are still rooted at '/'."""
        assert format_path(path, "") == expected

    @pytest.mark.parametrize("path", ["Shared Documents/a", "/Docs/100% done", ""])
    def test_root_site_is_idempotent(self, path):
        once = format_path(path, "")
        assert format_path(once, "") == once
        assert once.startswith("/")


class TestValidateName:
    """Tests for validate_name."""

    @pytest.mark.parametrize("char", list(FORBIDDEN_NAME_CHARS))
    def test_rejects_each_forbidden_character(self, char):
        """Every forbidden character is rejected wherever it appears."""
        for name in (f"{char}file", f"fi{char}le", f"file{char}"):
            with pytest.raises(InvalidNameError) as exc_info:
                validate_name(name)
            assert exc_info.value.name == name

    @pytest.mark.parametrize(
        "name",
        ["report.pdf", "Quarterly Report (final).docx", "a-b_c.d", "ümlaut", "#hash", ""],
    )
    def test_accepts_names_without_forbidden_characters(self, name):
        validate_name(name)

    def test_error_message_mentions_name(self):
        with pytest.raises(InvalidNameError, match="a/b contains forbidden characters"):
            validate_name("a/b")

    def test_invalid_name_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_name("a:b")

    def test_backslash_and_quote_are_forbidden(self):
        """Regex metacharacters in the forbidden set are matched literally."""
        for name in ("a\\b", 'say "hi"', "a|b"):
            with pytest.raises(InvalidNameError):
                validate_name(name)
        validate_name("a.b[1]")


class TestHelpers:
    """Tests for URL literal helpers."""

    def test_odata_literal_doubles_single_quotes(self):
        assert odata_literal("O'Brien's") == "O''Brien''s"

    def test_encode_name_percent_encodes_spaces_and_hash(self):
        assert encode_name("my file #1.txt") == "my%20file%20%231.txt"
