# extsync Utilities Module
# Helper functions for paths, hashing, platform detection and async calls

from extsync.utils.aio import blocking_in_flight, run_blocking, wait_blocking, with_timeout
from extsync.utils.hashing import content_hash, payload_hash
from extsync.utils.paths import (
    atomic_write,
    create_backup,
    ensure_dir,
    is_within,
    matches_any_pattern,
    matches_pattern,
)
from extsync.utils.platform import (
    get_current_platform,
    get_default_settings_dir,
)

__all__ = [
    # Async
    "with_timeout",
    "run_blocking",
    "wait_blocking",
    "blocking_in_flight",
    # Platform
    "get_current_platform",
    "get_default_settings_dir",
    # Paths
    "ensure_dir",
    "atomic_write",
    "create_backup",
    "is_within",
    "matches_pattern",
    "matches_any_pattern",
    # Hashing
    "content_hash",
    "payload_hash",
]
