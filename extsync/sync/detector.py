# extsync Change Detection
# Three-way comparison of local inventory, remote snapshot and sync baseline

import logging
from abc import ABC, abstractmethod

from extsync.store.base import LocalStateStore, RemoteStore
from extsync.sync.changes import ChangeRecord, SyncStatus
from extsync.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


class ChangeDetector(ABC):
    """Produces the ordered change records of one sync pass."""

    @abstractmethod
    async def detect_changes(self) -> list[ChangeRecord]:
        """
        Detect what changed since the last sync.

        Returns:
            Change records in the order they must be applied.
        """


class SnapshotChangeDetector(ChangeDetector):
    """
    Detects changes by comparing three views of the inventory.

    - local: what is installed and configured right now
    - remote: the canonical snapshot
    - baseline: the remote contents recorded at the last successful sync

    A difference between remote and baseline is a server change, a
    difference between local and baseline is a client change. When both
    sides changed the settings, the server wins.
    """

    def __init__(self, local: LocalStateStore, remote: RemoteStore):
        self.local = local
        self.remote = remote

    async def detect_changes(self) -> list[ChangeRecord]:
        snapshot = await self.remote.fetch_snapshot()
        if snapshot is None or snapshot.last_update is None:
            return [ChangeRecord(status=SyncStatus.FIRST_TIME_CONNECT)]

        local_update = await self.local.get_last_update()
        if local_update is None:
            return [
                ChangeRecord(
                    status=SyncStatus.NEW_INSTANCE,
                    extensions=tuple(snapshot.extensions),
                    extension_settings=dict(snapshot.settings),
                    last_update=snapshot.last_update,
                )
            ]

        installed = await self.local.list_installed()
        local_settings = await self.local.read_settings()
        baseline = await self.local.get_baseline()

        known = set(baseline.extensions)
        remote_extensions = set(snapshot.extensions)
        local_hash = payload_hash(local_settings)

        records: list[ChangeRecord] = []
        server_settings_changed = False

        if snapshot.last_update != local_update:
            added = [ext for ext in snapshot.extensions if ext not in known and ext not in installed]
            removed = [ext for ext in baseline.extensions if ext not in remote_extensions and ext in installed]
            remote_hash = snapshot.settings_hash

            if added:
                records.append(
                    ChangeRecord(SyncStatus.ADD_EXTENSIONS_FROM_SERVER, tuple(added), last_update=snapshot.last_update)
                )
            if removed:
                records.append(
                    ChangeRecord(SyncStatus.REMOVE_EXTENSIONS_FROM_SERVER, tuple(removed), last_update=snapshot.last_update)
                )
            if remote_hash != baseline.settings_hash and remote_hash != local_hash:
                server_settings_changed = True
                records.append(
                    ChangeRecord(
                        SyncStatus.EXTENSION_SETTINGS_CHANGED_FROM_SERVER,
                        extension_settings=dict(snapshot.settings),
                        last_update=snapshot.last_update,
                    )
                )

        client_added = sorted(ext for ext in installed if ext not in known and ext not in remote_extensions)
        client_removed = [ext for ext in baseline.extensions if ext not in installed and ext in remote_extensions]

        if client_added:
            records.append(
                ChangeRecord(SyncStatus.ADD_EXTENSIONS_FROM_CLIENT, tuple(client_added), last_update=local_update)
            )
        if client_removed:
            records.append(
                ChangeRecord(SyncStatus.REMOVE_EXTENSIONS_FROM_CLIENT, tuple(client_removed), last_update=local_update)
            )
        if local_hash not in (baseline.settings_hash, snapshot.settings_hash) and not server_settings_changed:
            records.append(
                ChangeRecord(
                    SyncStatus.SETTINGS_CHANGED_FROM_CLIENT,
                    extension_settings=local_settings,
                    last_update=local_update,
                )
            )

        if records:
            logger.debug("detected %d change(s): %s", len(records), ", ".join(r.status.value for r in records))
        return records
