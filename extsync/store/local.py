# extsync Local Store
# Editor extensions through the editor CLI, settings files on disk

import logging
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from extsync.config.schema import ExtsyncConfig
from extsync.errors import LocalStoreError
from extsync.store.base import LocalStateStore
from extsync.state import StateManager, SyncBaseline
from extsync.utils.aio import run_blocking
from extsync.utils.paths import atomic_write, create_backup, is_within, matches_any_pattern

logger = logging.getLogger(__name__)


def _run_editor(argv: list[str]) -> subprocess.CompletedProcess[str]:
    """
    Run an editor CLI command.

    Args:
        argv: Full command line.

    Returns:
        CompletedProcess with result.

    Raises:
        LocalStoreError: If the command fails or the executable is missing.
    """
    try:
        result = subprocess.run(argv, check=False, capture_output=True, text=True)
    except FileNotFoundError:
        raise LocalStoreError(f"{argv[0]} command not found. Is the editor CLI on PATH?") from None

    if result.returncode != 0:
        raise LocalStoreError(
            f"Editor command failed: {' '.join(argv)}",
            returncode=result.returncode,
            stderr=result.stderr.strip() if result.stderr else "",
        )
    return result


class EditorLocalStore(LocalStateStore):
    """
    Local state of a VS Code family editor.

    Extensions are listed, installed and removed with the editor CLI.
    Settings are the files below ``settings_dir`` matching
    ``settings_files``. The sync stamp lives in the state file.
    """

    def __init__(
        self,
        *,
        editor: str,
        list_command: list[str],
        install_command: list[str],
        uninstall_command: list[str],
        settings_dir: Path,
        settings_files: list[str],
        state_manager: StateManager,
        backups_dir: Optional[Path] = None,
    ):
        self.editor = editor
        self.list_command = list_command
        self.install_command = install_command
        self.uninstall_command = uninstall_command
        self.settings_dir = settings_dir
        self.settings_files = settings_files
        self.state_manager = state_manager
        self.backups_dir = backups_dir

    @classmethod
    def from_config(cls, config: ExtsyncConfig, state_manager: Optional[StateManager] = None) -> "EditorLocalStore":
        """Create a store for the configured editor."""
        editor = config.editor
        return cls(
            editor=editor.name,
            list_command=editor.list_command,
            install_command=editor.install_command,
            uninstall_command=editor.uninstall_command,
            settings_dir=editor.get_settings_dir(),
            settings_files=editor.settings_files,
            state_manager=state_manager or StateManager(Path(config.state_file)),
            backups_dir=Path(editor.backups_dir),
        )

    def _argv(self, template: list[str], extension_id: str = "") -> list[str]:
        return [part.replace("{editor}", self.editor).replace("{id}", extension_id) for part in template]

    # Extensions

    def _list_installed(self) -> set[str]:
        output = _run_editor(self._argv(self.list_command)).stdout
        installed: set[str] = set()
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            # --show-versions prints "publisher.name@1.2.3"
            installed.add(line.split("@", 1)[0])
        return installed

    def _install(self, extensions: list[str]) -> list[str]:
        installed = self._list_installed()
        missing = [ext for ext in extensions if ext not in installed]
        for ext in missing:
            logger.info("installing extension %s", ext)
            _run_editor(self._argv(self.install_command, ext))
        return missing

    def _uninstall(self, extensions: list[str]) -> list[str]:
        installed = self._list_installed()
        present = [ext for ext in extensions if ext in installed]
        for ext in present:
            logger.info("uninstalling extension %s", ext)
            _run_editor(self._argv(self.uninstall_command, ext))
        return present

    async def list_installed(self) -> set[str]:
        return await run_blocking(self._list_installed)

    async def install(self, extensions: Iterable[str]) -> list[str]:
        return await run_blocking(self._install, list(extensions))

    async def uninstall(self, extensions: Iterable[str]) -> list[str]:
        return await run_blocking(self._uninstall, list(extensions))

    # Settings

    def _is_settings_file(self, name: str) -> bool:
        return matches_any_pattern(name, self.settings_files) and is_within(self.settings_dir / name, self.settings_dir)

    def _read_settings(self) -> dict[str, str]:
        if not self.settings_dir.exists():
            return {}

        payload: dict[str, str] = {}
        for path in sorted(self.settings_dir.rglob("*")):
            if not path.is_file():
                continue
            name = path.relative_to(self.settings_dir).as_posix()
            if not self._is_settings_file(name):
                continue
            try:
                payload[name] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise LocalStoreError(f"Failed to read {path}: {e}") from e
        return payload

    def _backup(self, target: Path) -> None:
        backup_path = create_backup(target, self.backups_dir)
        if backup_path:
            logger.debug("backed up %s to %s", target, backup_path)

    def _write_settings(self, payload: dict[str, str]) -> None:
        written: set[str] = set()
        for name, text in sorted(payload.items()):
            if not self._is_settings_file(name):
                logger.warning("ignoring settings file %s: not a synchronized settings file", name)
                continue

            written.add(name)
            target = self.settings_dir / name
            try:
                if target.exists() and target.read_text(encoding="utf-8") == text:
                    continue
                self._backup(target)
                atomic_write(target, text)
            except (OSError, UnicodeDecodeError) as e:
                raise LocalStoreError(f"Failed to write {target}: {e}") from e
            logger.info("updated settings file %s", name)

        # Files dropped from the payload were deleted on another machine
        for name in sorted(set(self._read_settings()) - written):
            target = self.settings_dir / name
            try:
                self._backup(target)
                target.unlink()
            except OSError as e:
                raise LocalStoreError(f"Failed to remove {target}: {e}") from e
            logger.info("removed settings file %s", name)

    async def read_settings(self) -> dict[str, str]:
        return await run_blocking(self._read_settings)

    async def write_settings(self, payload: dict[str, str]) -> None:
        await run_blocking(self._write_settings, dict(payload))

    # Sync stamp

    async def get_last_update(self) -> Optional[int]:
        return self.state_manager.state.last_update

    async def set_last_update(
        self,
        value: Optional[int],
        *,
        extensions: Optional[list[str]] = None,
        settings_hash: Optional[str] = None,
    ) -> None:
        self.state_manager.mark_synced(value, extensions=extensions, settings_hash=settings_hash)
        logger.debug("local last_update set to %s", value)

    async def get_baseline(self) -> SyncBaseline:
        return self.state_manager.state.baseline


def create_local_store(config: ExtsyncConfig, state_manager: Optional[StateManager] = None) -> LocalStateStore:
    """
    Create the local store described by a configuration.

    Args:
        config: extsync configuration.
        state_manager: Optional state manager (creates one from ``state_file`` if not provided).

    Returns:
        A LocalStateStore.
    """
    return EditorLocalStore.from_config(config, state_manager)
