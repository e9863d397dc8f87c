"""
Orchestration package for Citizenly.

Coordinates the LegiScan adapter, repositories, feed generator and
cache into legislative sync passes.
"""

from .bill_sync import BillSyncOrchestrator, SyncRepositories

__all__ = [
    "BillSyncOrchestrator",
    "SyncRepositories",
]
