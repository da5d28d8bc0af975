# extsync Instance Registry
# Keeps a single active sync engine among the running extsync processes

import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Optional

import yaml

from extsync.utils.paths import atomic_write, ensure_dir

try:
    import fcntl
except ImportError:
    fcntl = None

try:
    import msvcrt
except ImportError:
    msvcrt = None

logger = logging.getLogger(__name__)

StartFn = Callable[[], None]


@contextmanager
def file_lock(path: Path) -> Iterator[None]:
    """
    Hold an exclusive inter-process lock on ``path`` while the block runs.

    Blocks until the lock is free. The lock file is left in place.
    """
    ensure_dir(path.parent)
    with open(path, "a+b") as f:
        if fcntl:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        elif msvcrt:
            f.seek(0)
            msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
        try:
            yield
        finally:
            if fcntl:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            elif msvcrt:
                f.seek(0)
                msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)


def pid_alive(pid: int) -> bool:
    """
    Check whether a process with the given pid is running.

    Args:
        pid: Process id.

    Returns:
        True if the process exists.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to another user
        return True
    except OSError:
        return False
    return True


class InstanceRegistry:
    """
    Ordered list of registered instances; the first one is active.

    Without a path the registry lives in memory and coordinates engines
    of one process. With a path it is a YAML file shared by every
    process of the user, and entries of dead processes are pruned on
    every read.
    """

    def __init__(self, path: Optional[Path] = None, *, is_alive: Callable[[int], bool] = pid_alive):
        """
        Initialize registry.

        Args:
            path: Registry file. None keeps the registry in memory.
            is_alive: Liveness check for file-backed entries.
        """
        self.path = path
        self.is_alive = is_alive
        self._instances: list[int] = []
        self._start_fns: dict[int, StartFn] = {}
        self._started: set[int] = set()

    def _load(self) -> list[int]:
        if self.path is None:
            return list(self._instances)

        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError:
            logger.warning("instance registry %s is corrupt, starting empty", self.path)
            return []

        instances = [int(pid) for pid in data.get("instances", [])]
        return [pid for pid in instances if self.is_alive(pid)]

    def _save(self, instances: list[int]) -> None:
        if self.path is None:
            self._instances = list(instances)
            return

        content = yaml.dump({"instances": instances}, default_flow_style=False)
        atomic_write(self.path, content)

    def _transaction(self):
        """Exclusive access to the shared file for one read-modify-write."""
        if self.path is None:
            return nullcontext()
        return file_lock(self.path.with_name(self.path.name + ".lock"))

    def list_instances(self) -> list[int]:
        """Get the registered instance ids, active instance first."""
        return self._load()

    def active_instance(self) -> Optional[int]:
        """Get the id of the active instance, if any."""
        instances = self._load()
        return instances[0] if instances else None

    def register(self, instance_id: int, start_fn: StartFn) -> bool:
        """
        Register an instance and start it if no other instance is active.

        Args:
            instance_id: Unique id of the instance (process id).
            start_fn: Called once when the instance becomes active.

        Returns:
            True if the instance is now the active one.
        """
        with self._transaction():
            instances = self._load()
            if instance_id not in instances:
                instances.append(instance_id)
            self._save(instances)
        self._start_fns[instance_id] = start_fn

        logger.debug("registered instance %s (%d total)", instance_id, len(instances))
        if instances[0] != instance_id:
            return False

        if instance_id not in self._started:
            self._start(instance_id)
        return True

    def unregister(self, instance_id: int) -> None:
        """
        Remove an instance and hand over to the next one if it was active.

        The next instance is started here only when its start function is
        known to this process; others take over through ``claim()``.
        """
        with self._transaction():
            instances = self._load()
            was_active = bool(instances) and instances[0] == instance_id
            if instance_id in instances:
                instances.remove(instance_id)
            self._save(instances)
        self._start_fns.pop(instance_id, None)
        self._started.discard(instance_id)
        logger.debug("unregistered instance %s", instance_id)

        if was_active and instances:
            successor = instances[0]
            if successor in self._start_fns and successor not in self._started:
                logger.info("instance %s takes over sync", successor)
                self._start(successor)

    def claim(self, instance_id: int) -> bool:
        """
        Start a standby instance once every instance ahead of it is gone.

        Args:
            instance_id: Registered instance id.

        Returns:
            True if the instance became active by this call.
        """
        with self._transaction():
            instances = self._load()
            if instance_id not in instances:
                instances.append(instance_id)
            # Persist pruned entries so other processes see the same order
            self._save(instances)

        if instances[0] != instance_id or instance_id in self._started:
            return False
        if instance_id not in self._start_fns:
            return False

        logger.info("instance %s takes over sync", instance_id)
        self._start(instance_id)
        return True

    def _start(self, instance_id: int) -> None:
        self._started.add(instance_id)
        self._start_fns[instance_id]()
