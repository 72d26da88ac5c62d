"""Python client for the Companion file-fetching server."""

__version__ = "0.1.0"
