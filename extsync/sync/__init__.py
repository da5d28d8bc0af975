# extsync Sync Module
# Reconciliation engine and its components

from extsync.sync.changes import ChangeRecord, SyncStatus
from extsync.sync.detector import ChangeDetector, SnapshotChangeDetector
from extsync.sync.engine import SYNC_SUCCESS_MESSAGE, PassOutcome, SyncEngine, SyncResult, build_engine
from extsync.sync.handlers import ActionHandlers
from extsync.sync.scheduler import AutoPollScheduler
from extsync.state import StateManager, SyncBaseline, SyncState

__all__ = [
    # Changes
    "ChangeRecord",
    "SyncStatus",
    # Detection
    "ChangeDetector",
    "SnapshotChangeDetector",
    # Handlers
    "ActionHandlers",
    # Scheduler
    "AutoPollScheduler",
    # State
    "SyncState",
    "SyncBaseline",
    "StateManager",
    # Engine
    "SyncEngine",
    "SyncResult",
    "PassOutcome",
    "SYNC_SUCCESS_MESSAGE",
    "build_engine",
]
