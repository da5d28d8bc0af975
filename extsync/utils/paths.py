# extsync Path Utilities
# Settings file writes, backups and pattern matching

import fnmatch
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional


def ensure_dir(path: Path) -> Path:
    """Create ``path`` and its parents if missing, returning it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_backup_dir() -> Path:
    """Get the directory receiving settings file backups."""
    return Path.home() / ".config" / "extsync" / "backups"


def create_backup(path: Path, backup_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Copy a settings file aside before it is replaced.

    Backups are named ``<name>.<timestamp>.bak`` with microsecond
    resolution, so two writes in the same second keep both copies.

    Args:
        path: File about to be overwritten.
        backup_dir: Directory for the copy. Defaults to ~/.config/extsync/backups.

    Returns:
        Path of the copy, or None when ``path`` does not exist yet.
    """
    if not path.exists():
        return None

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    target = ensure_dir(backup_dir or get_backup_dir()) / f"{path.name}.{stamp}.bak"
    shutil.copy2(path, target)
    return target


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Replace a file so readers see either the old or the new content.

    The content goes to a hidden sibling file first, which is then renamed
    over ``path``. Parent directories are created as needed.

    Args:
        path: File to write.
        content: Text or bytes.
        encoding: Encoding used for text content.
    """
    ensure_dir(path.parent)
    data = content.encode(encoding) if isinstance(content, str) else content

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def is_within(path: Path, base: Path) -> bool:
    """Check whether ``path`` resolves to ``base`` or somewhere below it."""
    try:
        path.resolve().relative_to(base.resolve())
    except ValueError:
        return False
    return True


def matches_pattern(name: str | Path, pattern: str) -> bool:
    """
    Match a relative settings file name against a glob pattern.

    ``*`` and ``?`` follow fnmatch rules. A single ``**`` stands for any
    number of intermediate directories, e.g. ``profiles/**/settings.json``.
    """
    name = Path(name).as_posix()
    if "**" not in pattern:
        return fnmatch.fnmatch(name, pattern)

    head, _, tail = pattern.partition("**")
    if not name.startswith(head):
        return False
    return fnmatch.fnmatch(name[len(head):], "*" + tail.lstrip("/"))


def matches_any_pattern(name: str | Path, patterns: list[str]) -> bool:
    """Check if a settings file name matches one of ``patterns``."""
    return any(matches_pattern(name, pattern) for pattern in patterns)
