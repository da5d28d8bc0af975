# extsync Errors
# Exception hierarchy for reconciliation passes and their collaborators

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from extsync.sync.changes import ChangeRecord


class SyncError(Exception):
    """Base class for every failure that can abort a sync pass."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DetectionError(SyncError):
    """The change detector could not produce a change list."""


class HandlerError(SyncError):
    """An action handler failed while applying a change record."""

    def __init__(self, message: str, record: Optional["ChangeRecord"] = None):
        self.record = record
        super().__init__(message)


class LocalStoreError(SyncError):
    """Reading or mutating the local editor state failed."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class RemoteStoreError(SyncError):
    """Reading or writing the remote snapshot failed."""


class CollaboratorTimeout(SyncError):
    """A store or detector call did not finish within its time limit."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")
