# extsync Store Interfaces
# Contracts for the local editor state and the remote snapshot

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from extsync.state import SyncBaseline
from extsync.utils.hashing import payload_hash


@dataclass
class Snapshot:
    """Full inventory of one editor: extensions plus settings files."""

    extensions: list[str] = field(default_factory=list)
    settings: dict[str, str] = field(default_factory=dict)
    last_update: Optional[int] = None
    updated_by: Optional[str] = None

    @property
    def settings_hash(self) -> Optional[str]:
        """Order-independent hash of the settings payload."""
        return payload_hash(self.settings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "last_update": self.last_update,
            "updated_by": self.updated_by,
            "extensions": list(self.extensions),
            "settings": dict(self.settings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """Create from dictionary."""
        last_update = data.get("last_update")
        return cls(
            extensions=list(data.get("extensions") or []),
            settings={str(k): str(v) for k, v in (data.get("settings") or {}).items()},
            last_update=int(last_update) if last_update is not None else None,
            updated_by=data.get("updated_by"),
        )


@dataclass
class RemoteMetadata:
    """Version information of the remote snapshot."""

    last_update: Optional[int] = None
    extensions: list[str] = field(default_factory=list)
    settings_hash: Optional[str] = None

    @property
    def exists(self) -> bool:
        """Check if the remote holds a snapshot at all."""
        return self.last_update is not None


@dataclass
class SaveResult:
    """Outcome of writing a snapshot to the remote."""

    success: bool
    last_update: Optional[int] = None


class LocalStateStore(ABC):
    """Access to the local editor: extensions, settings files and sync stamp."""

    @abstractmethod
    async def list_installed(self) -> set[str]:
        """Get the ids of the installed extensions."""

    @abstractmethod
    async def install(self, extensions: Iterable[str]) -> list[str]:
        """Install extensions, skipping installed ones. Returns the ids installed."""

    @abstractmethod
    async def uninstall(self, extensions: Iterable[str]) -> list[str]:
        """Uninstall extensions, skipping missing ones. Returns the ids removed."""

    @abstractmethod
    async def read_settings(self) -> dict[str, str]:
        """Read the synchronized settings files (name -> text)."""

    @abstractmethod
    async def write_settings(self, payload: dict[str, str]) -> None:
        """Write a settings payload to the local settings files."""

    @abstractmethod
    async def get_last_update(self) -> Optional[int]:
        """Get the remote version last reflected locally."""

    @abstractmethod
    async def set_last_update(
        self,
        value: Optional[int],
        *,
        extensions: Optional[list[str]] = None,
        settings_hash: Optional[str] = None,
    ) -> None:
        """Record the remote version now reflected locally, with its baseline."""

    @abstractmethod
    async def get_baseline(self) -> SyncBaseline:
        """Get the remote contents recorded at the last sync."""

    async def read_inventory(self) -> Snapshot:
        """Read extensions and settings as one snapshot."""
        installed = await self.list_installed()
        settings = await self.read_settings()
        return Snapshot(extensions=sorted(installed), settings=settings)


class RemoteStore(ABC):
    """Access to the canonical snapshot shared by all instances."""

    @abstractmethod
    async def fetch_snapshot(self) -> Optional[Snapshot]:
        """Get the current remote snapshot, or None if nothing was saved yet."""

    @abstractmethod
    async def save(self, snapshot: Snapshot) -> SaveResult:
        """Replace the remote snapshot, assigning it a new version."""

    async def fetch_metadata(self) -> RemoteMetadata:
        """Get version information of the remote snapshot."""
        snapshot = await self.fetch_snapshot()
        if snapshot is None:
            return RemoteMetadata()
        return RemoteMetadata(
            last_update=snapshot.last_update,
            extensions=list(snapshot.extensions),
            settings_hash=snapshot.settings_hash,
        )
