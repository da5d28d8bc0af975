# extsync Platform Detection Utilities
# Per-platform locations of editor user settings

import os
import platform
from pathlib import Path

# Platform name mapping: system name -> extsync platform name
_PLATFORM_MAP: dict[str, str] = {
    "Darwin": "macos",
    "Linux": "linux",
    "Windows": "windows",
}

# Editor CLI name -> user data folder name
_EDITOR_DATA_DIRS: dict[str, str] = {
    "code": "Code",
    "code-insiders": "Code - Insiders",
    "codium": "VSCodium",
    "cursor": "Cursor",
}


def get_current_platform() -> str:
    """
    Get the current platform identifier.

    Returns:
        Platform string: "macos", "linux", or "windows".
    """
    system = platform.system()
    return _PLATFORM_MAP.get(system, system.lower())


def get_default_settings_dir(editor: str = "code") -> Path:
    """
    Get the user settings directory of an editor on this platform.

    Args:
        editor: Editor CLI name (code, code-insiders, codium, cursor).
                Unknown names are used as the data folder name verbatim.

    Returns:
        Path to the editor's ``User`` settings directory.
    """
    data_dir = _EDITOR_DATA_DIRS.get(editor, editor)
    current = get_current_platform()

    if current == "macos":
        base = Path.home() / "Library" / "Application Support"
    elif current == "windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / data_dir / "User"
