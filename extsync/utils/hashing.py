# extsync Hashing Utilities
# Content hashing for change detection

import hashlib
import json
from collections.abc import Mapping
from typing import Optional


def content_hash(content: str | bytes, *, algorithm: str = "sha256") -> str:
    """
    Calculate hash of content.

    Args:
        content: String or bytes content.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return hasher.hexdigest()


def payload_hash(payload: Optional[Mapping[str, str]]) -> Optional[str]:
    """
    Hash a settings payload independently of key order.

    Args:
        payload: Mapping of settings file name to file text.

    Returns:
        Hex digest, or None when there is no payload.
    """
    if payload is None:
        return None
    canonical = json.dumps(dict(payload), sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return content_hash(canonical)
