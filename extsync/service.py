# extsync Sync Service
# Activation lifecycle: single-instance registration, first pass, shutdown

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

from extsync.config.schema import ExtsyncConfig
from extsync.registry import InstanceRegistry
from extsync.sync.engine import SyncEngine

logger = logging.getLogger(__name__)


class SyncService:
    """
    Runs a sync engine for the lifetime of a process.

    Only the active instance of the registry syncs. Standby instances
    try to take over every ``standby_interval`` seconds.
    """

    def __init__(
        self,
        engine: SyncEngine,
        registry: InstanceRegistry,
        *,
        instance_id: Optional[int] = None,
        startup_delay: float = 10.0,
        standby_interval: float = 60.0,
    ):
        """
        Initialize service.

        Args:
            engine: Engine started when this instance becomes active.
            registry: Registry deciding which instance is active.
            instance_id: Id of this instance. Defaults to the process id.
            startup_delay: Seconds to wait before registering.
            standby_interval: Seconds between takeover attempts while on standby.
        """
        self.engine = engine
        self.registry = registry
        self.instance_id = instance_id if instance_id is not None else os.getpid()
        self.startup_delay = startup_delay
        self.standby_interval = standby_interval
        self.active = False
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: ExtsyncConfig, engine: SyncEngine) -> "SyncService":
        """Create a service using the configured registry file and timings."""
        return cls(
            engine,
            InstanceRegistry(Path(config.instance.registry_file)),
            startup_delay=config.sync.startup_delay,
            standby_interval=config.sync.poll_interval,
        )

    def _start(self) -> None:
        self.active = True
        logger.info("instance %s is active, starting sync", self.instance_id)
        task = asyncio.get_running_loop().create_task(self.engine.request_sync(), name="extsync-initial-sync")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _register(self) -> bool:
        if self.registry.register(self.instance_id, self._start):
            return True

        logger.info(
            "instance %s is syncing, %s standing by",
            self.registry.active_instance(),
            self.instance_id,
        )
        return False

    async def activate(self) -> bool:
        """
        Wait the startup delay, then register this instance.

        Returns:
            True if this instance became active and started syncing.
        """
        if self.startup_delay:
            await asyncio.sleep(self.startup_delay)
        return self._register()

    async def deactivate(self) -> None:
        """Unregister, stop auto-polling and let a running pass finish."""
        self.registry.unregister(self.instance_id)
        self.engine.shutdown()
        self.active = False

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("instance %s deactivated", self.instance_id)

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Run until ``stop_event`` is set.

        Args:
            stop_event: Set to request shutdown.
        """
        if await self._wait(stop_event, self.startup_delay):
            return

        self._register()
        try:
            while not await self._wait(stop_event, self.standby_interval):
                if not self.active:
                    self.registry.claim(self.instance_id)
        finally:
            await self.deactivate()

    @staticmethod
    async def _wait(stop_event: asyncio.Event, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds. Returns True if stop was requested."""
        if stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
