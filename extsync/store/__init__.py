# extsync Store Module
# Local editor state and remote snapshot storage

from extsync.store.base import LocalStateStore, RemoteMetadata, RemoteStore, SaveResult, Snapshot
from extsync.store.local import EditorLocalStore, create_local_store
from extsync.store.remote import DirectoryRemoteStore, GitRemoteStore, create_remote_store

__all__ = [
    # Interfaces
    "LocalStateStore",
    "RemoteStore",
    "Snapshot",
    "RemoteMetadata",
    "SaveResult",
    # Local
    "EditorLocalStore",
    "create_local_store",
    # Remote
    "DirectoryRemoteStore",
    "GitRemoteStore",
    "create_remote_store",
]
