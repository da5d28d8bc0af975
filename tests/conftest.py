# extsync Test Fixtures
# Pytest fixtures and in-memory stores for extsync tests

import asyncio
import tempfile
from collections.abc import Generator, Iterable
from pathlib import Path
from typing import Optional

import pytest
import yaml

from extsync.state import SyncBaseline
from extsync.store.base import LocalStateStore, RemoteStore, SaveResult, Snapshot


class FakeLocalStore(LocalStateStore):
    """In-memory editor: installed extensions, settings payload and sync stamp."""

    def __init__(self):
        self.installed: set[str] = set()
        self.settings: dict[str, str] = {}
        self.last_update: Optional[int] = None
        self.baseline = SyncBaseline()
        self.calls: list[str] = []
        self.stamps: list[Optional[int]] = []
        self.fail_on: dict[str, Exception] = {}
        self.delay = 0.0

    async def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def list_installed(self) -> set[str]:
        await self._record("list_installed")
        return set(self.installed)

    async def install(self, extensions: Iterable[str]) -> list[str]:
        await self._record("install")
        added = [ext for ext in extensions if ext not in self.installed]
        self.installed.update(added)
        return added

    async def uninstall(self, extensions: Iterable[str]) -> list[str]:
        await self._record("uninstall")
        removed = [ext for ext in extensions if ext in self.installed]
        self.installed.difference_update(removed)
        return removed

    async def read_settings(self) -> dict[str, str]:
        await self._record("read_settings")
        return dict(self.settings)

    async def write_settings(self, payload: dict[str, str]) -> None:
        await self._record("write_settings")
        self.settings = dict(payload)

    async def get_last_update(self) -> Optional[int]:
        return self.last_update

    async def set_last_update(self, value, *, extensions=None, settings_hash=None) -> None:
        await self._record("set_last_update")
        self.last_update = value
        self.stamps.append(value)
        if extensions is not None:
            self.baseline.extensions = list(extensions)
        if settings_hash is not None:
            self.baseline.settings_hash = settings_hash

    async def get_baseline(self) -> SyncBaseline:
        return SyncBaseline(list(self.baseline.extensions), self.baseline.settings_hash)


class FakeRemoteStore(RemoteStore):
    """In-memory remote snapshot with integer versions."""

    def __init__(self):
        self.snapshot: Optional[Snapshot] = None
        self.saved: list[Snapshot] = []
        self.calls: list[str] = []
        self.save_success = True
        self.fail_on: dict[str, Exception] = {}

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def fetch_snapshot(self) -> Optional[Snapshot]:
        self._record("fetch_snapshot")
        if self.snapshot is None:
            return None
        return Snapshot(
            extensions=list(self.snapshot.extensions),
            settings=dict(self.snapshot.settings),
            last_update=self.snapshot.last_update,
        )

    async def save(self, snapshot: Snapshot) -> SaveResult:
        self._record("save")
        if not self.save_success:
            return SaveResult(success=False)

        previous = self.snapshot.last_update if self.snapshot and self.snapshot.last_update else 0
        self.snapshot = Snapshot(
            extensions=sorted(snapshot.extensions),
            settings=dict(snapshot.settings),
            last_update=previous + 1,
        )
        self.saved.append(self.snapshot)
        return SaveResult(success=True, last_update=previous + 1)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("EXTSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def local_store() -> FakeLocalStore:
    """Create an empty in-memory local store."""
    return FakeLocalStore()


@pytest.fixture
def remote_store() -> FakeRemoteStore:
    """Create an empty in-memory remote store."""
    return FakeRemoteStore()


@pytest.fixture
def settings_dir(temp_dir: Path) -> Path:
    """Create a mock editor User settings directory."""
    user_dir = temp_dir / "Code" / "User"
    (user_dir / "snippets").mkdir(parents=True)
    (user_dir / "settings.json").write_text('{"editor.tabSize": 4}\n', encoding="utf-8")
    (user_dir / "keybindings.json").write_text("[]\n", encoding="utf-8")
    (user_dir / "snippets" / "python.json").write_text("{}\n", encoding="utf-8")
    (user_dir / "globalStorage.txt").write_text("not synced\n", encoding="utf-8")
    return user_dir


@pytest.fixture
def sample_config(temp_dir: Path, settings_dir: Path) -> dict:
    """Create a configuration dictionary pointing into the temp directory."""
    return {
        "editor": {
            "name": "code",
            "settings_dir": str(settings_dir),
            "backups_dir": str(temp_dir / "backups"),
        },
        "remote": {
            "backend": "directory",
            "path": str(temp_dir / "remote"),
        },
        "sync": {
            "poll_interval": 60,
            "startup_delay": 0,
            "collaborator_timeout": 5,
        },
        "instance": {
            "registry_file": str(temp_dir / "instances.yaml"),
        },
        "output": {
            "verbose": False,
            "colored": False,
            "log_file": None,
        },
        "state_file": str(temp_dir / "state.yaml"),
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Write sample configuration to a file."""
    path = temp_dir / "config.yaml"
    path.write_text(yaml.dump(sample_config), encoding="utf-8")
    return path
