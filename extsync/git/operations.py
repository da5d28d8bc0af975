# extsync Git Operations
# Thin wrappers around the git CLI used by the git-backed remote store

import subprocess
from pathlib import Path
from typing import Optional


class GitError(Exception):
    """A git command failed or git is not installed."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def _run_git(
    *args: str,
    cwd: Optional[Path] = None,
    check: bool = True,
    capture_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run ``git <args>`` in ``cwd``.

    Raises:
        GitError: git is missing, or the command exited non-zero while
            ``check`` is set. ``stderr`` carries git's own message.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(cmd, cwd=cwd, check=False, capture_output=capture_output, text=True)
    except FileNotFoundError:
        raise GitError("git command not found. Is git installed?") from None

    if check and result.returncode != 0:
        raise GitError(
            f"Git command failed: {' '.join(cmd)}",
            returncode=result.returncode,
            stderr=(result.stderr or "").strip(),
        )
    return result


def get_repo_root(path: Optional[Path] = None) -> Optional[Path]:
    """Get the top-level directory of the working copy containing ``path``."""
    try:
        result = _run_git("rev-parse", "--show-toplevel", cwd=path)
    except GitError:
        return None
    return Path(result.stdout.strip())


def is_git_repo(path: Optional[Path] = None) -> bool:
    """Check whether ``path`` lies inside a git working copy."""
    return get_repo_root(path) is not None


def has_remote(remote: str, path: Optional[Path] = None) -> bool:
    """Check whether the working copy at ``path`` defines ``remote``."""
    try:
        result = _run_git("remote", cwd=path)
    except GitError:
        return False
    return remote in result.stdout.split()


def stage_files(files: list[Path], path: Optional[Path] = None) -> None:
    """Add ``files`` to the index. Does nothing for an empty list."""
    if files:
        _run_git("add", "--", *(str(f) for f in files), cwd=path)


def commit(message: str, path: Optional[Path] = None) -> Optional[str]:
    """
    Commit the index.

    Returns:
        Hash of the new commit, or None when nothing is staged (for
        instance when a snapshot was saved with identical content).
    """
    # --quiet exits 1 when the index differs from HEAD
    if _run_git("diff", "--cached", "--quiet", cwd=path, check=False).returncode == 0:
        return None

    _run_git("commit", "-m", message, cwd=path)
    return _run_git("rev-parse", "HEAD", cwd=path).stdout.strip()


def push(path: Optional[Path] = None, *, remote: str = "origin") -> None:
    """Push the current branch to ``remote``."""
    _run_git("push", remote, "HEAD", cwd=path)


def pull(path: Optional[Path] = None, *, remote: str = "origin", rebase: bool = True) -> None:
    """Pull the tracked branch from ``remote``, rebasing local commits by default."""
    args = ["pull", "--rebase", remote] if rebase else ["pull", remote]
    _run_git(*args, cwd=path)
