"""Bulk web crawler with robots.txt enforcement, retries, and cached markdown extraction."""

__version__ = "0.1.0"
