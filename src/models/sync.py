"""
Sync run models.

Responsibility: Options, progress events and results for a legislative sync
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional


@dataclass(slots=True)
class SyncProgress:
    """Progress event emitted to ``SyncOptions.on_progress``."""

    phase: str  # sessions | session_sync | bills_fetch | bills_sync | cleanup | complete
    current: int
    total: int
    message: str


@dataclass(slots=True)
class SyncOptions:
    session_id: Optional[int] = None
    force: bool = False
    max_bills: Optional[int] = None
    on_progress: Optional[Callable[[SyncProgress], None]] = None


@dataclass(slots=True)
class SyncResults:
    """Counters and error strings accumulated over one sync run."""

    success: bool = False
    sessions_synced: int = 0
    bills_processed: int = 0
    bills_new: int = 0
    bills_updated: int = 0
    legislators_synced: int = 0
    roll_calls_synced: int = 0
    feed_items_created: int = 0
    errors: List[str] = field(default_factory=list)
    duration_ms: int = 0
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "sessions_synced": self.sessions_synced,
            "bills_processed": self.bills_processed,
            "bills_new": self.bills_new,
            "bills_updated": self.bills_updated,
            "legislators_synced": self.legislators_synced,
            "roll_calls_synced": self.roll_calls_synced,
            "feed_items_created": self.feed_items_created,
            "errors": list(self.errors),
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
