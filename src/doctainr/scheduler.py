"""
Periodic refresh loop for the StateStore.

Containers change often and are refreshed on a short interval; images and
volumes change rarely and share a longer one. Each tick only schedules
refresh tasks through the store, so a slow engine call never delays the
loop itself, and overlapping refreshes of the same kind are resolved by the
store's last-write-wins rule.
"""

import asyncio
import logging
import time
from typing import Optional

from .state import StateStore

logger = logging.getLogger(__name__)


class RefreshScheduler:
    def __init__(self, store: StateStore, containers_interval: float = 1.0,
                 others_interval: float = 5.0, tick: Optional[float] = None):
        self.store = store
        self.containers_interval = containers_interval
        self.others_interval = others_interval
        self.tick = tick if tick is not None else min(containers_interval, others_interval, 0.5)
        self.running = False
        self._task: Optional[asyncio.Task] = None
        self._force_refresh_flag = False
        self._last_containers = float("-inf")
        self._last_others = float("-inf")

    def force_refresh(self) -> None:
        """Refresh every kind on the next tick."""
        self._force_refresh_flag = True

    def start(self) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            return self._task
        self.running = True
        self._task = asyncio.get_running_loop().create_task(self.run(), name="refresh-scheduler")
        return self._task

    async def stop(self) -> None:
        self.running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def mark_refreshed(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        self._last_containers = now
        self._last_others = now

    def run_once(self, now: Optional[float] = None) -> int:
        """Schedule whatever refreshes are due; returns how many were issued."""
        if self.store.degraded:
            # The store already reported the missing connection; nothing to poll
            return 0
        now = time.monotonic() if now is None else now
        force = self._force_refresh_flag
        self._force_refresh_flag = False
        issued = 0

        if force or now - self._last_containers >= self.containers_interval:
            self.store.refresh_containers()
            self._last_containers = now
            issued += 1

        if force or now - self._last_others >= self.others_interval:
            self.store.refresh_images()
            self.store.refresh_volumes()
            self._last_others = now
            issued += 2
        return issued

    async def run(self) -> None:
        logger.info(
            f"Refresh scheduler started (containers every {self.containers_interval}s, "
            f"others every {self.others_interval}s)"
        )
        while self.running:
            try:
                self.run_once()
            except Exception:
                logger.exception("Refresh tick failed")
            await asyncio.sleep(self.tick)
