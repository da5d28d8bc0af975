# Tests for extsync.sync.handlers
# Corrective actions and their version stamping

from unittest.mock import MagicMock

import pytest

from extsync.errors import CollaboratorTimeout, LocalStoreError, RemoteStoreError
from extsync.store.base import Snapshot
from extsync.sync.changes import ChangeRecord, SyncStatus
from extsync.sync.handlers import ActionHandlers
from extsync.utils.hashing import payload_hash

SETTINGS = {"settings.json": '{"files.autoSave": "afterDelay"}'}


class TestBackup:
    """Tests for ActionHandlers.backup."""

    @pytest.mark.asyncio
    async def test_saves_inventory_and_stamps_version(self, local_store, remote_store):
        local_store.installed = {"b.two", "a.one"}
        local_store.settings = dict(SETTINGS)

        await ActionHandlers(local_store, remote_store).backup()

        assert remote_store.snapshot.extensions == ["a.one", "b.two"]
        assert remote_store.snapshot.settings == SETTINGS
        assert local_store.stamps == [1]
        assert local_store.baseline.extensions == ["a.one", "b.two"]
        assert local_store.baseline.settings_hash == payload_hash(SETTINGS)

    @pytest.mark.asyncio
    async def test_rejected_save_raises(self, local_store, remote_store):
        remote_store.save_success = False

        with pytest.raises(RemoteStoreError, match="rejected"):
            await ActionHandlers(local_store, remote_store).backup()
        assert local_store.stamps == []

    @pytest.mark.asyncio
    async def test_save_error_keeps_stamp(self, local_store, remote_store):
        local_store.last_update = 5
        remote_store.fail_on["save"] = RemoteStoreError("disk full")

        with pytest.raises(RemoteStoreError):
            await ActionHandlers(local_store, remote_store).backup()
        assert local_store.last_update == 5


class TestApplyAdd:
    """Tests for ActionHandlers.apply_add."""

    @pytest.mark.asyncio
    async def test_installs_only_missing(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["a.one", "b.two"], last_update=10)
        local_store.installed = {"a.one"}
        install = local_store.install
        requested = []

        async def spy(extensions):
            requested.extend(extensions)
            return await install(extensions)

        local_store.install = spy

        await ActionHandlers(local_store, remote_store).apply_add(["a.one", "b.two"], 10)

        assert requested == ["b.two"]
        assert local_store.installed == {"a.one", "b.two"}
        assert local_store.stamps == [10]
        assert local_store.baseline.extensions == ["a.one", "b.two"]

    @pytest.mark.asyncio
    async def test_nothing_missing_still_stamps(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["a.one"], last_update=10)
        local_store.installed = {"a.one"}

        await ActionHandlers(local_store, remote_store).apply_add(["a.one"], 10)

        assert "install" not in local_store.calls
        assert local_store.stamps == [10]

    @pytest.mark.asyncio
    async def test_remote_moved_keeps_stamp(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["a.one", "b.two"], last_update=11)
        local_store.last_update = 9

        await ActionHandlers(local_store, remote_store).apply_add(["b.two"], 10)

        assert local_store.installed == {"b.two"}
        assert local_store.stamps == []
        assert local_store.last_update == 9

    @pytest.mark.asyncio
    async def test_install_failure_propagates(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["b.two"], last_update=10)
        local_store.fail_on["install"] = LocalStoreError("marketplace unreachable")

        with pytest.raises(LocalStoreError):
            await ActionHandlers(local_store, remote_store).apply_add(["b.two"], 10)
        assert local_store.stamps == []


class TestApplyRemove:
    """Tests for ActionHandlers.apply_remove."""

    @pytest.mark.asyncio
    async def test_uninstalls_only_present(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["a.one"], last_update=10)
        local_store.installed = {"a.one", "b.two"}

        await ActionHandlers(local_store, remote_store).apply_remove(["b.two", "c.three"], 10)

        assert local_store.installed == {"a.one"}
        assert local_store.stamps == [10]


class TestApplySettings:
    """Tests for ActionHandlers.apply_settings."""

    @pytest.mark.asyncio
    async def test_writes_then_stamps(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(settings=SETTINGS, last_update=10)

        await ActionHandlers(local_store, remote_store).apply_settings(SETTINGS, 10)

        assert local_store.settings == SETTINGS
        assert local_store.calls == ["write_settings", "set_last_update"]
        assert local_store.stamps == [10]
        assert local_store.baseline.settings_hash == payload_hash(SETTINGS)

    @pytest.mark.asyncio
    async def test_write_failure_keeps_stamp(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(settings=SETTINGS, last_update=10)
        local_store.last_update = 9
        local_store.fail_on["write_settings"] = LocalStoreError("read-only file system")

        with pytest.raises(LocalStoreError):
            await ActionHandlers(local_store, remote_store).apply_settings(SETTINGS, 10)
        assert local_store.last_update == 9


class TestNewInstance:
    """Tests for ActionHandlers.new_instance."""

    @pytest.mark.asyncio
    async def test_adopts_remote_then_publishes(self, local_store, remote_store):
        remote_store.snapshot = Snapshot(extensions=["a.one"], settings=SETTINGS, last_update=10)
        local_store.installed = {"local.only"}
        record = ChangeRecord(SyncStatus.NEW_INSTANCE, ("a.one",), dict(SETTINGS), 10)

        await ActionHandlers(local_store, remote_store).new_instance(record)

        assert local_store.calls.index("install") < local_store.calls.index("write_settings")
        assert remote_store.calls[-1] == "save"
        assert remote_store.snapshot.extensions == ["a.one", "local.only"]
        assert remote_store.snapshot.settings == SETTINGS
        assert local_store.last_update == 11


class TestResolve:
    """Tests for the status dispatch table."""

    @pytest.mark.parametrize(
        "status,method",
        [
            (SyncStatus.FIRST_TIME_CONNECT, "_on_backup"),
            (SyncStatus.ADD_EXTENSIONS_FROM_CLIENT, "_on_backup"),
            (SyncStatus.REMOVE_EXTENSIONS_FROM_CLIENT, "_on_backup"),
            (SyncStatus.SETTINGS_CHANGED_FROM_CLIENT, "_on_backup"),
            (SyncStatus.ADD_EXTENSIONS_FROM_SERVER, "_on_add"),
            (SyncStatus.REMOVE_EXTENSIONS_FROM_SERVER, "_on_remove"),
            (SyncStatus.EXTENSION_SETTINGS_CHANGED_FROM_SERVER, "_on_settings"),
            (SyncStatus.NEW_INSTANCE, "new_instance"),
        ],
    )
    def test_every_status_has_handler(self, local_store, remote_store, status, method):
        handlers = ActionHandlers(local_store, remote_store)
        assert handlers.resolve(ChangeRecord(status)) == getattr(handlers, method)

    def test_unknown_status(self, local_store, remote_store):
        record = MagicMock(status="renamed_on_server")
        assert ActionHandlers(local_store, remote_store).resolve(record) is None


class TestTimeouts:
    """Tests for bounded store calls."""

    @pytest.mark.asyncio
    async def test_slow_store_call_times_out(self, local_store, remote_store):
        local_store.delay = 1.0
        handlers = ActionHandlers(local_store, remote_store, timeout=0.01)

        with pytest.raises(CollaboratorTimeout) as exc_info:
            await handlers.apply_add(["a.one"])
        assert exc_info.value.operation == "list installed extensions"
        assert "timed out after 0.01s" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_no_timeout(self, local_store, remote_store):
        local_store.delay = 0.01
        remote_store.snapshot = Snapshot(extensions=["a.one"], last_update=3)

        await ActionHandlers(local_store, remote_store, timeout=None).apply_add(["a.one"], 3)

        assert local_store.installed == {"a.one"}
