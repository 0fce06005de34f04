"""Wind observation scraper: parse, merge and retain per-owner history."""

from .version import __version__

__all__ = ["__version__"]
