"""
Models package for Citizenly.

This package contains the Pydantic models for:
- Adapter responses and metadata
- Legislative entities (sessions, bills, legislators, roll calls)
- Feed items, polls, notifications and users
"""

from .adapter_models import (
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
    AdapterResponse,
)
from .legislative import (
    BillDetail,
    BillSummary,
    LegislativeSession,
    Legislator,
    MasterList,
    RollCall,
)
from .feed import FeedFilters, FeedItem, FeedItemType, FeedStats, NewFeedItem
from .sync import SyncOptions, SyncProgress, SyncResults

__all__ = [
    "AdapterStatus",
    "AdapterError",
    "AdapterMetrics",
    "AdapterResponse",
    "BillDetail",
    "BillSummary",
    "LegislativeSession",
    "Legislator",
    "MasterList",
    "RollCall",
    "FeedFilters",
    "FeedItem",
    "FeedItemType",
    "FeedStats",
    "NewFeedItem",
    "SyncOptions",
    "SyncProgress",
    "SyncResults",
]
