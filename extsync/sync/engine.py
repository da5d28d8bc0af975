# extsync Sync Engine
# Reconciliation passes: lock, detect, dispatch in order, notify, re-arm polling

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from extsync.config.schema import ExtsyncConfig
from extsync.errors import DetectionError, HandlerError, SyncError
from extsync.store.local import create_local_store
from extsync.store.remote import create_remote_store
from extsync.sync.changes import ChangeRecord
from extsync.sync.detector import ChangeDetector, SnapshotChangeDetector
from extsync.sync.handlers import ActionHandlers
from extsync.sync.scheduler import AutoPollScheduler
from extsync.state import StateManager
from extsync.utils.aio import blocking_in_flight, wait_blocking, with_timeout

logger = logging.getLogger(__name__)

SYNC_SUCCESS_MESSAGE = "Extensions synced successfully"

Notifier = Callable[[str], None]


class PassOutcome(str, Enum):
    """How a sync request ended."""

    COMPLETED = "completed"
    COALESCED = "coalesced"  # another pass was already running
    FAILED = "failed"


@dataclass
class SyncResult:
    """Result of one sync request."""

    outcome: PassOutcome
    detected: list[ChangeRecord] = field(default_factory=list)
    applied: list[ChangeRecord] = field(default_factory=list)
    skipped: list[ChangeRecord] = field(default_factory=list)
    error: Optional[SyncError] = None

    @property
    def success(self) -> bool:
        """Check if the request did not fail."""
        return self.outcome != PassOutcome.FAILED

    @property
    def applied_count(self) -> int:
        """Number of change records whose handler completed."""
        return len(self.applied)

    @property
    def failed_record(self) -> Optional[ChangeRecord]:
        """The record whose handler failed, if any."""
        if isinstance(self.error, HandlerError):
            return self.error.record
        return None

    @property
    def pending(self) -> list[ChangeRecord]:
        """Detected records that were neither applied nor skipped."""
        done = len(self.applied) + len(self.skipped)
        return self.detected[done:]


class SyncEngine:
    """
    Reconciliation engine for one running instance.

    At most one pass runs at a time. The lock is a plain flag: every
    trigger runs on the same event loop and the flag is checked and set
    before the first suspension point, so overlapping triggers simply
    collapse into the pass already in flight.
    """

    def __init__(
        self,
        detector: ChangeDetector,
        handlers: ActionHandlers,
        *,
        poll_interval: Optional[float] = 60.0,
        timeout: Optional[float] = None,
        notifier: Optional[Notifier] = None,
    ):
        """
        Initialize sync engine.

        Args:
            detector: Produces the ordered change records of a pass.
            handlers: Applies change records.
            poll_interval: Seconds between automatic passes. None disables auto-polling.
            timeout: Seconds the change detection may take. None disables the bound.
            notifier: Called with a message after a pass applied changes.
        """
        self.detector = detector
        self.handlers = handlers
        self.timeout = timeout
        self.notifier = notifier
        self.scheduler = AutoPollScheduler(self.request_sync, poll_interval) if poll_interval else None
        self._sync_lock = False
        self._closed = False

    @property
    def sync_lock(self) -> bool:
        """Check if a pass is in flight."""
        return self._sync_lock

    @property
    def closed(self) -> bool:
        """Check if the engine was shut down."""
        return self._closed

    async def request_sync(self) -> SyncResult:
        """
        Run one reconciliation pass unless one is already running.

        Never raises for sync failures: they are logged and returned on
        the result.

        Returns:
            SyncResult describing what happened.
        """
        if self._sync_lock:
            logger.debug("sync already in progress, request coalesced")
            return SyncResult(outcome=PassOutcome.COALESCED)

        self._sync_lock = True
        logger.debug("sync lock acquired")
        result = SyncResult(outcome=PassOutcome.COMPLETED)

        try:
            await self._run_pass(result)
        except SyncError as e:
            result.outcome = PassOutcome.FAILED
            result.error = e
            logger.error("sync failed: %s", e.message)
        finally:
            # A timed-out store call may still be running in its worker thread
            abandoned = blocking_in_flight()
            if abandoned:
                logger.warning("waiting for %d abandoned call(s) before releasing the sync lock", abandoned)
                await wait_blocking()
            self._sync_lock = False
            logger.debug("sync lock released")

        if result.success:
            if result.applied_count > 0:
                logger.info("sync applied %d change(s)", result.applied_count)
                if self.notifier:
                    self.notifier(SYNC_SUCCESS_MESSAGE)
            if self.scheduler and not self._closed:
                self.scheduler.arm()

        return result

    async def _run_pass(self, result: SyncResult) -> None:
        try:
            changes = await with_timeout(self.detector.detect_changes(), "detect changes", self.timeout)
        except SyncError as e:
            raise DetectionError(f"Change detection failed: {e.message}") from e
        except Exception as e:
            raise DetectionError(f"Change detection failed: {e}") from e

        result.detected = list(changes)
        if changes:
            logger.info("detected %d change(s)", len(changes))

        for record in changes:
            handler = self.handlers.resolve(record)
            if handler is None:
                logger.warning("no handler for change status %r, skipping", record.status)
                result.skipped.append(record)
                continue

            logger.debug("applying %s %s", record.status.value, record.summary)
            try:
                await handler(record)
            except Exception as e:
                message = e.message if isinstance(e, SyncError) else str(e)
                raise HandlerError(f"{record.status.value}: {message}", record) from e

            result.applied.append(record)

    def shutdown(self) -> None:
        """
        Stop automatic passes.

        A pass that is already running is allowed to finish but will not
        re-arm the timer.
        """
        self._closed = True
        if self.scheduler:
            self.scheduler.disarm()


def build_engine(
    config: ExtsyncConfig,
    *,
    notifier: Optional[Notifier] = None,
    auto_poll: bool = True,
    state_manager: Optional[StateManager] = None,
) -> SyncEngine:
    """
    Create an engine wired to the configured stores.

    Args:
        config: extsync configuration.
        notifier: Called with a message after a pass applied changes.
        auto_poll: Whether successful passes arm the auto-poll timer.
        state_manager: Optional state manager (creates one from ``state_file`` if not provided).

    Returns:
        SyncEngine ready for ``request_sync()``.
    """
    state_manager = state_manager or StateManager(Path(config.state_file))
    local = create_local_store(config, state_manager)
    remote = create_remote_store(config)
    timeout = config.sync.collaborator_timeout or None

    return SyncEngine(
        SnapshotChangeDetector(local, remote),
        ActionHandlers(local, remote, timeout=timeout),
        poll_interval=config.sync.poll_interval if auto_poll else None,
        timeout=timeout,
        notifier=notifier if config.sync.notify else None,
    )
