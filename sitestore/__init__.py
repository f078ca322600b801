"""Async client for SharePoint site file storage over the REST API."""

__version__ = "0.1.0"
