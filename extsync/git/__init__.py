# extsync Git Module
# Git operations for the git-backed remote store

from extsync.git.operations import (
    GitError,
    commit,
    get_repo_root,
    has_remote,
    is_git_repo,
    pull,
    push,
    stage_files,
)

__all__ = [
    "GitError",
    "get_repo_root",
    "is_git_repo",
    "has_remote",
    "stage_files",
    "commit",
    "push",
    "pull",
]
