"""
Cache package for Citizenly.

Redis-backed caching of legislative data and personalized feeds.
"""

from .legislative_cache import LegislativeCache, legislative_cache, with_cache

__all__ = [
    "LegislativeCache",
    "legislative_cache",
    "with_cache",
]
