"""
Feeds Module
============
Legislative feed item generation and RSS/Atom syndication.

Exports:
    - FeedItemGenerator: Derives feed items from bill/vote changes
    - FeedBuilder: RSS/Atom renderer for feed items
    - FeedFormat: RSS/Atom format enum
"""

from .feed_generator import FeedItemGenerator, get_bill_relevance_score, truncate_text
from .feed_builder import FeedBuilder, FeedFormat, build_guid

__all__ = [
    'FeedItemGenerator',
    'get_bill_relevance_score',
    'truncate_text',
    'FeedBuilder',
    'FeedFormat',
    'build_guid',
]
