# extsync Remote Store
# Canonical snapshot kept as a JSON document in a shared directory or git repository

import json
import logging
import os
import socket
import time
from pathlib import Path
from typing import Optional

from extsync.config.schema import ExtsyncConfig, RemoteBackend
from extsync.errors import RemoteStoreError
from extsync.git.operations import GitError, commit, has_remote, is_git_repo, pull, push, stage_files
from extsync.store.base import RemoteStore, SaveResult, Snapshot
from extsync.utils.aio import run_blocking
from extsync.utils.paths import atomic_write

logger = logging.getLogger(__name__)


def next_version(previous: Optional[int]) -> int:
    """
    Get the version for a new snapshot.

    Versions are epoch milliseconds, forced to increase even when clocks
    of different machines disagree.
    """
    now = int(time.time() * 1000)
    if previous is None:
        return now
    return max(now, previous + 1)


def instance_label() -> str:
    """Get a label identifying this process in snapshots."""
    return f"{socket.gethostname()}:{os.getpid()}"


class DirectoryRemoteStore(RemoteStore):
    """Snapshot stored as a JSON file in a directory shared between machines."""

    def __init__(self, path: Path, snapshot_file: str = "extsync.json"):
        self.path = path
        self.snapshot_path = path / snapshot_file

    def _load(self) -> Optional[Snapshot]:
        if not self.snapshot_path.exists():
            return None

        try:
            data = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RemoteStoreError(f"Failed to read snapshot {self.snapshot_path}: {e}") from e

        if not isinstance(data, dict):
            raise RemoteStoreError(f"Snapshot root is not an object in {self.snapshot_path}")

        return Snapshot.from_dict(data)

    def _read(self) -> Optional[Snapshot]:
        return self._load()

    def _write(self, snapshot: Snapshot) -> SaveResult:
        current = self._load()
        version = next_version(current.last_update if current else None)

        document = Snapshot(
            extensions=sorted(snapshot.extensions),
            settings=dict(snapshot.settings),
            last_update=version,
            updated_by=snapshot.updated_by or instance_label(),
        )
        try:
            content = json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"
            atomic_write(self.snapshot_path, content)
        except OSError as e:
            raise RemoteStoreError(f"Failed to write snapshot {self.snapshot_path}: {e}") from e

        logger.info("saved snapshot version %d to %s", version, self.snapshot_path)
        return SaveResult(success=True, last_update=version)

    async def fetch_snapshot(self) -> Optional[Snapshot]:
        return await run_blocking(self._read)

    async def save(self, snapshot: Snapshot) -> SaveResult:
        return await run_blocking(self._write, snapshot)


class GitRemoteStore(DirectoryRemoteStore):
    """
    Snapshot stored in a git working copy.

    Reads pull first and saves commit (and push) the snapshot file, so
    the git remote acts as the canonical copy.
    """

    def __init__(
        self,
        path: Path,
        snapshot_file: str = "extsync.json",
        *,
        remote: str = "origin",
        auto_pull: bool = True,
        auto_push: bool = True,
        commit_prefix: str = "[SYNC]",
    ):
        super().__init__(path, snapshot_file)
        self.remote = remote
        self.auto_pull = auto_pull
        self.auto_push = auto_push
        self.commit_prefix = commit_prefix

    def _ensure_repo(self) -> None:
        if not is_git_repo(self.path):
            raise RemoteStoreError(f"Not a git repository: {self.path}")

    def _pull(self) -> None:
        if not (self.auto_pull and has_remote(self.remote, self.path)):
            return
        try:
            pull(self.path, remote=self.remote)
        except GitError as e:
            raise RemoteStoreError(f"git pull failed: {e.stderr or e.message}") from e

    def _read(self) -> Optional[Snapshot]:
        self._ensure_repo()
        self._pull()
        return self._load()

    def _write(self, snapshot: Snapshot) -> SaveResult:
        self._ensure_repo()
        self._pull()
        result = super()._write(snapshot)

        try:
            stage_files([self.snapshot_path], self.path)
            commit_hash = commit(f"{self.commit_prefix} Update extension snapshot ({result.last_update})", self.path)
            if commit_hash:
                logger.debug("committed snapshot as %s", commit_hash)
            if self.auto_push and has_remote(self.remote, self.path):
                push(self.path, remote=self.remote)
        except GitError as e:
            raise RemoteStoreError(f"git operation failed: {e.stderr or e.message}") from e

        return result


def create_remote_store(config: ExtsyncConfig) -> RemoteStore:
    """
    Create the remote store described by a configuration.

    Args:
        config: extsync configuration.

    Returns:
        A RemoteStore for the configured backend.
    """
    remote = config.remote
    path = Path(remote.path)

    if remote.backend == RemoteBackend.GIT:
        return GitRemoteStore(
            path,
            remote.snapshot_file,
            remote=remote.git_remote,
            auto_pull=remote.auto_pull,
            auto_push=remote.auto_push,
            commit_prefix=remote.commit_prefix,
        )
    return DirectoryRemoteStore(path, remote.snapshot_file)
