# extsync Change Records
# Classification of detected differences between local and remote state

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SyncStatus(str, Enum):
    """Direction and cause of a detected change."""

    # No remote snapshot exists yet
    FIRST_TIME_CONNECT = "first_time_connect"

    # Local side changed, remote is stale
    ADD_EXTENSIONS_FROM_CLIENT = "add_extensions_from_client"
    REMOVE_EXTENSIONS_FROM_CLIENT = "remove_extensions_from_client"
    SETTINGS_CHANGED_FROM_CLIENT = "settings_changed_from_client"

    # Remote side changed, local is stale
    ADD_EXTENSIONS_FROM_SERVER = "add_extensions_from_server"
    REMOVE_EXTENSIONS_FROM_SERVER = "remove_extensions_from_server"
    EXTENSION_SETTINGS_CHANGED_FROM_SERVER = "extension_settings_changed_from_server"

    # This client never synced, but the remote holds a full snapshot
    NEW_INSTANCE = "new_instance"

    @property
    def from_client(self) -> bool:
        """Check if the change originated on this machine."""
        return self in (
            SyncStatus.ADD_EXTENSIONS_FROM_CLIENT,
            SyncStatus.REMOVE_EXTENSIONS_FROM_CLIENT,
            SyncStatus.SETTINGS_CHANGED_FROM_CLIENT,
        )

    @property
    def from_server(self) -> bool:
        """Check if the change originated on the remote."""
        return self in (
            SyncStatus.ADD_EXTENSIONS_FROM_SERVER,
            SyncStatus.REMOVE_EXTENSIONS_FROM_SERVER,
            SyncStatus.EXTENSION_SETTINGS_CHANGED_FROM_SERVER,
        )

    @property
    def direction(self) -> str:
        """Get human-readable direction of the change."""
        if self.from_client or self == SyncStatus.FIRST_TIME_CONNECT:
            return "local → remote"
        if self.from_server:
            return "remote → local"
        return "remote ⇄ local"


@dataclass(frozen=True)
class ChangeRecord:
    """
    One detected difference between local and remote state.

    Records are produced by a change detector in the order they must be
    applied. ``last_update`` is the remote version the record was derived
    from.
    """

    status: SyncStatus
    extensions: tuple[str, ...] = ()
    extension_settings: Optional[dict[str, str]] = None
    last_update: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any iterable of ids but store an ordered, duplicate-free tuple
        object.__setattr__(self, "extensions", tuple(dict.fromkeys(self.extensions)))

    @property
    def summary(self) -> str:
        """Short description used in tables and log lines."""
        parts: list[str] = []
        if self.extensions:
            parts.append(", ".join(self.extensions))
        if self.extension_settings is not None:
            names = sorted(self.extension_settings)
            parts.append(f"settings: {', '.join(names) if names else '(empty)'}")
        return "; ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "extensions": list(self.extensions),
            "extension_settings": self.extension_settings,
            "last_update": self.last_update,
        }
