"""Core application utilities and configuration."""

from sitestore.core.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
