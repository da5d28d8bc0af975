# extsync Action Handlers
# Corrective actions applied for each kind of change record

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional

from extsync.errors import RemoteStoreError
from extsync.store.base import LocalStateStore, RemoteStore
from extsync.sync.changes import ChangeRecord, SyncStatus
from extsync.utils.aio import with_timeout

logger = logging.getLogger(__name__)

Handler = Callable[[ChangeRecord], Awaitable[None]]


class ActionHandlers:
    """
    Orchestrates local and remote store calls for each change record.

    Every handler finishes by recording the remote version it leaves the
    machine at, so the next detection does not report the handler's own
    writes as new changes.
    """

    def __init__(self, local: LocalStateStore, remote: RemoteStore, *, timeout: Optional[float] = None):
        """
        Initialize handlers.

        Args:
            local: Local editor state.
            remote: Remote snapshot storage.
            timeout: Seconds each store call may take. None disables the bound.
        """
        self.local = local
        self.remote = remote
        self.timeout = timeout
        self._dispatch: dict[SyncStatus, Handler] = {
            SyncStatus.FIRST_TIME_CONNECT: self._on_backup,
            SyncStatus.ADD_EXTENSIONS_FROM_CLIENT: self._on_backup,
            SyncStatus.REMOVE_EXTENSIONS_FROM_CLIENT: self._on_backup,
            SyncStatus.SETTINGS_CHANGED_FROM_CLIENT: self._on_backup,
            SyncStatus.ADD_EXTENSIONS_FROM_SERVER: self._on_add,
            SyncStatus.REMOVE_EXTENSIONS_FROM_SERVER: self._on_remove,
            SyncStatus.EXTENSION_SETTINGS_CHANGED_FROM_SERVER: self._on_settings,
            SyncStatus.NEW_INSTANCE: self.new_instance,
        }

    def resolve(self, record: ChangeRecord) -> Optional[Handler]:
        """
        Get the handler for a change record.

        Args:
            record: The change record.

        Returns:
            Handler coroutine function, or None for statuses without a handler.
        """
        return self._dispatch.get(record.status)

    async def _call(self, awaitable: Awaitable, operation: str):
        return await with_timeout(awaitable, operation, self.timeout)

    async def _refresh_last_update(self, expected: Optional[int] = None) -> None:
        """
        Copy the remote version and baseline into the local state.

        When ``expected`` is given and the remote has moved past it, the
        local stamp is left alone so the newer remote changes are detected
        on the next pass instead of being recorded as already applied.
        """
        metadata = await self._call(self.remote.fetch_metadata(), "fetch remote metadata")

        if expected is not None and metadata.last_update != expected:
            logger.info(
                "remote moved from version %s to %s during the pass, keeping local stamp",
                expected,
                metadata.last_update,
            )
            return

        await self._call(
            self.local.set_last_update(
                metadata.last_update,
                extensions=list(metadata.extensions),
                settings_hash=metadata.settings_hash,
            ),
            "store last update",
        )

    async def backup(self) -> None:
        """Send the full local inventory to the remote."""
        snapshot = await self._call(self.local.read_inventory(), "read local inventory")
        result = await self._call(self.remote.save(snapshot), "save remote snapshot")

        if not result.success:
            raise RemoteStoreError("Remote store rejected the snapshot")

        await self._call(
            self.local.set_last_update(
                result.last_update,
                extensions=list(snapshot.extensions),
                settings_hash=snapshot.settings_hash,
            ),
            "store last update",
        )
        logger.info("backed up %d extension(s) as version %s", len(snapshot.extensions), result.last_update)

    async def apply_add(self, extensions: Iterable[str], last_update: Optional[int] = None) -> None:
        """Install the given extensions that are not installed yet."""
        wanted = list(extensions)
        installed = await self._call(self.local.list_installed(), "list installed extensions")
        missing = [ext for ext in wanted if ext not in installed]

        if missing:
            await self._call(self.local.install(missing), "install extensions")
            logger.info("installed %s", ", ".join(missing))

        await self._refresh_last_update(last_update)

    async def apply_remove(self, extensions: Iterable[str], last_update: Optional[int] = None) -> None:
        """Uninstall the given extensions that are installed."""
        unwanted = list(extensions)
        installed = await self._call(self.local.list_installed(), "list installed extensions")
        present = [ext for ext in unwanted if ext in installed]

        if present:
            await self._call(self.local.uninstall(present), "uninstall extensions")
            logger.info("uninstalled %s", ", ".join(present))

        await self._refresh_last_update(last_update)

    async def apply_settings(self, payload: dict[str, str], last_update: Optional[int] = None) -> None:
        """
        Write a remote settings payload locally and stamp its version.

        Runs inside a locked pass, so no detection can observe the files
        between the write and the stamp. A failed write leaves the old
        stamp in place and the change is retried on the next pass.
        """
        await self._call(self.local.write_settings(payload), "write settings")
        logger.info("applied settings: %s", ", ".join(sorted(payload)) or "(empty)")

        await self._refresh_last_update(last_update)

    async def new_instance(self, record: ChangeRecord) -> None:
        """Adopt the remote snapshot on a first sync, then publish the merged inventory."""
        await self.apply_add(record.extensions, record.last_update)
        await self.apply_settings(record.extension_settings or {}, record.last_update)
        await self.backup()

    async def _on_backup(self, record: ChangeRecord) -> None:
        await self.backup()

    async def _on_add(self, record: ChangeRecord) -> None:
        await self.apply_add(record.extensions, record.last_update)

    async def _on_remove(self, record: ChangeRecord) -> None:
        await self.apply_remove(record.extensions, record.last_update)

    async def _on_settings(self, record: ChangeRecord) -> None:
        await self.apply_settings(record.extension_settings or {}, record.last_update)
