"""Command-line access to a SharePoint site's files.

Reads the site and credentials from the environment (see sitestore.config)
and runs a single file operation.

Usage:
    python -m sitestore.scripts.sharepoint_cli ls "Shared Documents"
    python -m sitestore.scripts.sharepoint_cli get "Shared Documents/a.pdf" ./a.pdf
    python -m sitestore.scripts.sharepoint_cli put ./a.pdf "Shared Documents"
    python -m sitestore.scripts.sharepoint_cli mkdir "Shared Documents" Reports
    python -m sitestore.scripts.sharepoint_cli rm "Shared Documents" a.pdf
"""

import argparse
import asyncio
import sys
from pathlib import Path

from sitestore.config import get_settings
from sitestore.core.logging import configure_logging, get_logger
from sitestore.core.sharepoint import (
    SharePointClient,
    SharePointError,
    create_client_from_settings,
)
from sitestore.core.sharepoint.models import FIELD_LENGTH, FIELD_NAME, FIELD_TIME_CREATED

logger = get_logger(__name__)


async def cmd_ls(client: SharePointClient, args: argparse.Namespace) -> None:
    listing = await client.list_folder_contents(args.folder)
    for folder in listing.folders:
        print(
            f"d  {folder.get(FIELD_TIME_CREATED, ''):<25} "
            f"{'-':>12}  {folder.get(FIELD_NAME, '')}"
        )
    for file in listing.files:
        print(
            f"-  {file.get(FIELD_TIME_CREATED, ''):<25} "
            f"{file.get(FIELD_LENGTH, ''):>12}  {file.get(FIELD_NAME, '')}"
        )


async def cmd_get(client: SharePointClient, args: argparse.Namespace) -> None:
    await client.download_file_to_local(args.remote, args.local)
    print(f"Downloaded {args.remote} -> {args.local}")


async def cmd_put(client: SharePointClient, args: argparse.Namespace) -> None:
    local = Path(args.local)
    content = local.read_bytes()
    name = args.name or local.name

    if args.chunked:
        await client.upload_file_from_large_buffer(args.folder, name, content)
    else:
        await client.upload(args.folder, name, content)
    print(f"Uploaded {local} -> {args.folder}/{name} ({len(content)} bytes)")


async def cmd_mkdir(client: SharePointClient, args: argparse.Namespace) -> None:
    await client.create_folder(args.parent, args.name)
    print(f"Created folder {args.parent}/{args.name}")


async def cmd_rm(client: SharePointClient, args: argparse.Namespace) -> None:
    await client.delete_file(args.folder, args.name)
    print(f"Deleted {args.folder}/{args.name}")


COMMANDS = {
    "ls": cmd_ls,
    "get": cmd_get,
    "put": cmd_put,
    "mkdir": cmd_mkdir,
    "rm": cmd_rm,
}


async def run_command(args: argparse.Namespace) -> int:
    """Run one CLI command against the configured site.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    settings = get_settings()

    if not settings.is_sharepoint_configured:
        print(
            "ERROR: SharePoint is not configured.\n"
            "Configure the following:\n"
            "  - SHAREPOINT_BASE_URL\n"
            "  - SHAREPOINT_SITE_URL\n"
            "  - SHAREPOINT_ACCESS_TOKEN, or SHAREPOINT_TENANT_ID and\n"
            "    SHAREPOINT_CLIENT_ID with SHAREPOINT_CLIENT_SECRET or\n"
            "    SHAREPOINT_CERTIFICATE_PATH/SHAREPOINT_CERTIFICATE_THUMBPRINT",
            file=sys.stderr,
        )
        return 1

    try:
        client = await create_client_from_settings(settings)
    except SharePointError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    async with client:
        try:
            await COMMANDS[args.command](client, args)
        except (SharePointError, OSError) as e:
            logger.error(
                "sharepoint_cli_command_failed",
                command=args.command,
                error_type=type(e).__name__,
                error=str(e),
            )
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        description="Manage files in a SharePoint site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List a document library, newest first
  python -m sitestore.scripts.sharepoint_cli ls "Shared Documents"

  # Upload with the chunked protocol regardless of size
  python -m sitestore.scripts.sharepoint_cli put ./big.iso "Shared Documents" --chunked
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls = subparsers.add_parser("ls", help="List a folder")
    ls.add_argument("folder", help="Folder path")

    get = subparsers.add_parser("get", help="Download a file")
    get.add_argument("remote", help="File path on SharePoint")
    get.add_argument("local", help="Local destination path")

    put = subparsers.add_parser("put", help="Upload a file")
    put.add_argument("local", help="Local file to upload")
    put.add_argument("folder", help="Destination folder path")
    put.add_argument("--name", help="Remote file name (default: local file name)")
    put.add_argument(
        "--chunked",
        action="store_true",
        help="Always use the chunked upload protocol",
    )

    mkdir = subparsers.add_parser("mkdir", help="Create a folder")
    mkdir.add_argument("parent", help="Parent folder path")
    mkdir.add_argument("name", help="New folder name")

    rm = subparsers.add_parser("rm", help="Delete a file")
    rm.add_argument("folder", help="Folder containing the file")
    rm.add_argument("name", help="File name")

    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    # Configure logging
    configure_logging()

    exit_code = asyncio.run(run_command(args))

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
