# extsync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from extsync.utils.platform import get_default_settings_dir


class RemoteBackend(str, Enum):
    """Where the canonical snapshot lives."""

    DIRECTORY = "directory"
    GIT = "git"


class EditorConfig(BaseModel):
    """Local editor whose extensions and settings are synchronized."""

    name: str = Field(default="code", description="Editor CLI executable")
    list_command: list[str] = Field(
        default_factory=lambda: ["{editor}", "--list-extensions"],
        description="Command printing one installed extension id per line",
    )
    install_command: list[str] = Field(
        default_factory=lambda: ["{editor}", "--install-extension", "{id}"],
        description="Command installing one extension ({id} placeholder)",
    )
    uninstall_command: list[str] = Field(
        default_factory=lambda: ["{editor}", "--uninstall-extension", "{id}"],
        description="Command uninstalling one extension ({id} placeholder)",
    )
    settings_dir: str | None = Field(
        default=None,
        description="Editor user settings directory. None = platform default for the editor.",
    )
    settings_files: list[str] = Field(
        default_factory=lambda: ["settings.json", "keybindings.json", "snippets/*.json"],
        description="Glob patterns (relative to settings_dir) of synchronized settings files",
    )
    backups_dir: str = Field(
        default="~/.config/extsync/backups",
        description="Where settings files are backed up before being overwritten",
    )

    @field_validator("settings_dir", "backups_dir")
    @classmethod
    def expand_optional_paths(cls, v: str | None) -> str | None:
        """Expand ~ in paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())

    def get_settings_dir(self) -> Path:
        """Get the configured settings directory or the platform default."""
        if self.settings_dir:
            return Path(self.settings_dir)
        return get_default_settings_dir(self.name)


class RemoteConfig(BaseModel):
    """Remote snapshot storage settings."""

    backend: RemoteBackend = Field(default=RemoteBackend.DIRECTORY, description="Storage backend")
    path: str = Field(description="Shared directory or git working copy holding the snapshot")
    snapshot_file: str = Field(default="extsync.json", description="Snapshot file name inside path")
    git_remote: str = Field(default="origin", description="Git remote name for push/pull")
    auto_pull: bool = Field(default=True, description="Pull before reading the snapshot (git backend)")
    auto_push: bool = Field(default=True, description="Push after saving the snapshot (git backend)")
    commit_prefix: str = Field(default="[SYNC]", description="Commit message prefix (git backend)")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())


class SyncConfig(BaseModel):
    """Reconciliation timing settings."""

    poll_interval: float = Field(default=60.0, gt=0, description="Seconds between automatic sync passes")
    startup_delay: float = Field(default=10.0, ge=0, description="Seconds to wait after activation before the first pass")
    collaborator_timeout: float = Field(
        default=120.0,
        ge=0,
        description="Seconds a single store or detector call may take. 0 disables the bound.",
    )
    notify: bool = Field(default=True, description="Announce passes that applied changes")


class InstanceConfig(BaseModel):
    """Single-instance coordination settings."""

    registry_file: str = Field(
        default="~/.config/extsync/instances.yaml",
        description="File listing running extsync processes on this machine",
    )

    @field_validator("registry_file")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_paths(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class ExtsyncConfig(BaseModel):
    """Root configuration model for extsync."""

    editor: EditorConfig = Field(default_factory=EditorConfig, description="Local editor settings")
    remote: RemoteConfig = Field(description="Remote snapshot settings")
    sync: SyncConfig = Field(default_factory=SyncConfig, description="Sync timing settings")
    instance: InstanceConfig = Field(default_factory=InstanceConfig, description="Instance registry settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")
    state_file: str = Field(default="~/.config/extsync/state.yaml", description="Local sync state file")

    @field_validator("state_file")
    @classmethod
    def expand_state_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())
