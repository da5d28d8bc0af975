# extsync Sync State
# Persistence of the last applied remote version and the sync baseline

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from extsync.utils.paths import atomic_write


@dataclass
class SyncBaseline:
    """Remote contents as of the last successful sync."""

    extensions: list[str] = field(default_factory=list)
    settings_hash: Optional[str] = None


@dataclass
class SyncState:
    """
    Local record of the last sync.

    ``last_update`` is the remote version this machine last applied or
    produced. It is None until the first successful pass.
    """

    version: str = "1.0"
    last_update: Optional[int] = None
    last_sync: Optional[str] = None  # ISO format datetime
    extensions: list[str] = field(default_factory=list)
    settings_hash: Optional[str] = None

    @property
    def baseline(self) -> SyncBaseline:
        """Get the baseline used for three-way change detection."""
        return SyncBaseline(extensions=list(self.extensions), settings_hash=self.settings_hash)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "last_update": self.last_update,
            "last_sync": self.last_sync,
            "extensions": list(self.extensions),
            "settings_hash": self.settings_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncState":
        """Create from dictionary."""
        last_update = data.get("last_update")
        return cls(
            version=data.get("version", "1.0"),
            last_update=int(last_update) if last_update is not None else None,
            last_sync=data.get("last_sync"),
            extensions=list(data.get("extensions") or []),
            settings_hash=data.get("settings_hash"),
        )


class StateManager:
    """
    Reads and writes the sync state file.

    The file is YAML; a hand-written JSON file is accepted too. A missing
    or unreadable file means this machine has never synced.
    """

    def __init__(self, state_path: Optional[Path] = None):
        """
        Initialize state manager.

        Args:
            state_path: Path to state file. Defaults to ~/.config/extsync/state.yaml
        """
        if state_path is None:
            state_path = Path.home() / ".config" / "extsync" / "state.yaml"
        self.state_path = state_path
        self._state: Optional[SyncState] = None

    @property
    def state(self) -> SyncState:
        """Get the state, reading the file on first access."""
        if self._state is None:
            self._state = self.load()
        return self._state

    def load(self) -> SyncState:
        """Read the state file, falling back to an empty state."""
        if not self.state_path.exists():
            return SyncState()

        try:
            with open(self.state_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if not isinstance(data, dict):
                    return SyncState()
                return SyncState.from_dict(data)
        except yaml.YAMLError:
            # Try JSON for state files written by hand
            try:
                with open(self.state_path, encoding="utf-8") as f:
                    return SyncState.from_dict(json.load(f))
            except json.JSONDecodeError:
                return SyncState()

    def save(self) -> None:
        """Save state to file."""
        if self._state is None:
            return

        content = yaml.dump(self._state.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        atomic_write(self.state_path, content)

    def mark_synced(
        self,
        last_update: Optional[int],
        *,
        extensions: Optional[list[str]] = None,
        settings_hash: Optional[str] = None,
    ) -> SyncState:
        """
        Record a new remote version and, when given, the matching baseline.

        Args:
            last_update: Remote version now reflected locally.
            extensions: Remote extension ids at that version. None keeps the stored list.
            settings_hash: Remote settings hash at that version. None keeps the stored hash.

        Returns:
            The updated state.
        """
        state = self.state
        state.last_update = last_update
        state.last_sync = datetime.now().isoformat()
        if extensions is not None:
            state.extensions = list(extensions)
        if settings_hash is not None:
            state.settings_hash = settings_hash
        self.save()
        return state

    def reset(self) -> None:
        """Forget the last sync so the next pass adopts the remote as a new instance."""
        self._state = SyncState()
        self.save()
