# extsync Configuration Loader
# Locate, read, validate and write the YAML configuration file

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from extsync.config.defaults import generate_default_config, get_default_config
from extsync.config.schema import ExtsyncConfig

CONFIG_ENV_VAR = "EXTSYNC_CONFIG"

# Top-level sections merged key by key with the defaults
_SECTIONS = ("editor", "remote", "sync", "instance", "output")


def get_config_dir() -> Path:
    """Get the directory holding config, state and registry files."""
    return Path.home() / ".config" / "extsync"


def get_config_path() -> Path:
    """Get the configuration file path, honouring ``$EXTSYNC_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "config.yaml"


def _read_yaml(config_path: Path) -> Any:
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_config(config_path: Optional[Path] = None) -> ExtsyncConfig:
    """
    Read and validate the configuration.

    Sections missing from the file, and keys missing from a section, take
    their default values.

    Args:
        config_path: File to read. Defaults to ``get_config_path()``.

    Returns:
        Validated configuration.

    Raises:
        FileNotFoundError: The file does not exist.
        ValidationError: A value is out of range or of the wrong type.
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\nRun 'extsync config init' to create one."
        )

    data = _read_yaml(config_path) or {}
    return ExtsyncConfig.model_validate(_merge_with_defaults(data))


def save_config(config: ExtsyncConfig, config_path: Optional[Path] = None) -> Path:
    """Write a configuration as YAML and return the file path."""
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # mode="json" turns RemoteBackend into its plain string value
    document = config.model_dump(mode="json", exclude_none=True)
    config_path.write_text(
        yaml.dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Write the commented default configuration unless a file already exists.

    Returns:
        ``(path, created)``; ``created`` is False when the file was kept.
    """
    config_path = config_path or get_config_path()
    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Check a configuration file and describe every problem found.

    Args:
        config_path: File to check. Defaults to ``get_config_path()``.

    Returns:
        ``(valid, errors)`` where each error is a human-readable line such
        as ``"sync -> poll_interval: Input should be greater than 0"``.
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        data = _read_yaml(config_path)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]
    if not isinstance(data, dict):
        return False, ["Configuration root must be a mapping"]

    errors = [] if "remote" in data else ["Missing 'remote' section"]
    try:
        ExtsyncConfig.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        errors.extend(
            f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )

    return not errors, errors


def _merge_with_defaults(data: dict) -> dict:
    merged = get_default_config()
    for section in _SECTIONS:
        if data.get(section) is not None:
            merged[section].update(data[section])
    if "state_file" in data:
        merged["state_file"] = data["state_file"]
    return merged
