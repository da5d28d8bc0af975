"""extsync - Extension & settings sync for code editors.

Keeps the installed extensions and settings files of a local editor
consistent with a canonical snapshot shared by every editor instance
on every machine.
"""

__version__ = "1.0.0"
__author__ = "Equitania Software GmbH"
__email__ = "info@equitania.de"

__all__ = [
    "__version__",
    "ChangeRecord",
    "SyncStatus",
    "SyncEngine",
    "SyncResult",
    "PassOutcome",
    "AutoPollScheduler",
    "SyncService",
    "InstanceRegistry",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("ChangeRecord", "SyncStatus"):
        from extsync.sync import changes

        return getattr(changes, name)
    if name in ("SyncEngine", "SyncResult", "PassOutcome"):
        from extsync.sync import engine

        return getattr(engine, name)
    if name == "AutoPollScheduler":
        from extsync.sync.scheduler import AutoPollScheduler

        return AutoPollScheduler
    if name == "SyncService":
        from extsync.service import SyncService

        return SyncService
    if name == "InstanceRegistry":
        from extsync.registry import InstanceRegistry

        return InstanceRegistry
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
