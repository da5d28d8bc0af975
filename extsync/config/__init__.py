# extsync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from extsync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from extsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from extsync.config.schema import (
    EditorConfig,
    ExtsyncConfig,
    InstanceConfig,
    OutputConfig,
    RemoteBackend,
    RemoteConfig,
    SyncConfig,
)

__all__ = [
    # Schema
    "ExtsyncConfig",
    "EditorConfig",
    "RemoteConfig",
    "RemoteBackend",
    "SyncConfig",
    "InstanceConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    "generate_default_config",
]
