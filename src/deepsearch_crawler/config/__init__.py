"""Configuration package for the crawler.

Re-exports the settings symbols so callers can write::

    from deepsearch_crawler.config import get_settings
"""

from __future__ import annotations

from deepsearch_crawler.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
