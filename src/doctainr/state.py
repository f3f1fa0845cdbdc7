"""
Application state management for the Docker resource view.

This module provides StateStore, the single owner of the resource snapshot
and of the transient fields a presentation layer shows next to it (host,
last action, last error, loading flag).

Architecture:
  - StateStore: lock-guarded holder of ResourceSnapshot + UI-facing fields
  - SyncOrchestrator (sync.py): schedules engine calls as asyncio tasks and
    commits their results back through the store's update methods
  - Readers poll get_version()/get_snapshot() or subscribe() to changes

Thread Safety:
  - All field access goes through self._lock (RLock for reentrant locking)
  - Every update replaces a whole value; no reader sees a partial write
  - No cross-field transactions: loading=False while images are still
    refreshing is a legal combination

Refresh Semantics:
  - Each resource kind is replaced wholesale when its refresh completes
  - Last write wins per kind, in completion order
  - A failed refresh keeps the previous list and records the error
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_DOCKER_HOST
from .engine import EngineClient
from .model import (
    ContainerRecord, ContainerState, ImageRecord, ResourceSnapshot,
    StoreSnapshot, VolumeRecord,
)
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)

Subscriber = Callable[[StoreSnapshot], None]


class StateStore:
    """Thread-safe owner of the engine resource view."""

    def __init__(self, client: Optional[EngineClient] = None,
                 host: str = DEFAULT_DOCKER_HOST,
                 call_timeout: Optional[float] = None,
                 dedupe_refreshes: bool = False):
        self._lock = threading.RLock()
        self._resources = ResourceSnapshot()
        self._host = host
        self._last_action: Optional[str] = None
        self._last_error: Optional[str] = None
        self._containers_loading = 0
        self._version = 0
        self._subscribers: List[Subscriber] = []
        self._client = client
        self._sync = SyncOrchestrator(
            self, client, call_timeout=call_timeout, dedupe_refreshes=dedupe_refreshes
        )
        if client is None:
            logger.warning("StateStore created without an engine client (degraded mode)")

    # --- Read access ---

    def get_version(self) -> int:
        with self._lock:
            return self._version

    def get_snapshot(self) -> StoreSnapshot:
        with self._lock:
            return self._snapshot_unlocked()

    @property
    def degraded(self) -> bool:
        return self._client is None

    @property
    def client(self) -> Optional[EngineClient]:
        return self._client

    @property
    def host(self) -> str:
        with self._lock:
            return self._host

    @property
    def resources(self) -> ResourceSnapshot:
        with self._lock:
            return self._resources

    @property
    def containers(self) -> Sequence[ContainerRecord]:
        with self._lock:
            return self._resources.containers

    @property
    def images(self) -> Sequence[ImageRecord]:
        with self._lock:
            return self._resources.images

    @property
    def volumes(self) -> Sequence[VolumeRecord]:
        with self._lock:
            return self._resources.volumes

    @property
    def last_action(self) -> Optional[str]:
        with self._lock:
            return self._last_action

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._containers_loading > 0

    @property
    def sync(self) -> SyncOrchestrator:
        return self._sync

    # --- Entry points for the presentation layer ---

    def refresh_all(self):
        """Refresh containers, images and volumes independently."""
        return [self.refresh_containers(), self.refresh_images(), self.refresh_volumes()]

    def refresh_containers(self, force: bool = False):
        return self._sync.refresh("containers", force=force)

    def refresh_images(self):
        return self._sync.refresh("images")

    def refresh_volumes(self):
        return self._sync.refresh("volumes")

    def start_container(self, container_id: str):
        return self._sync.mutate("start", container_id)

    def stop_container(self, container_id: str):
        return self._sync.mutate("stop", container_id)

    def set_container_state(self, container_id: str, target: ContainerState):
        """Move a container toward target; the engine verb follows from it."""
        if target is ContainerState.RUNNING:
            return self.start_container(container_id)
        return self.stop_container(container_id)

    def record_action(self, message: str) -> None:
        """Record a UI-only action (connection test, settings save)."""
        with self._lock:
            self._last_action = message
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    def set_host(self, host: str) -> None:
        # Display only: the live connection keeps its original endpoint.
        with self._lock:
            self._host = host
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    async def wait_idle(self) -> None:
        await self._sync.wait_idle()

    # --- Subscriptions ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    # --- Commits (called by SyncOrchestrator) ---

    def update_resources(self, kind: str, records) -> None:
        """Replace one resource list wholesale and clear the last error."""
        records = tuple(records)
        with self._lock:
            if kind == "containers":
                self._resources = ResourceSnapshot(records, self._resources.images, self._resources.volumes)
            elif kind == "images":
                self._resources = ResourceSnapshot(self._resources.containers, records, self._resources.volumes)
            elif kind == "volumes":
                self._resources = ResourceSnapshot(self._resources.containers, self._resources.images, records)
            else:
                raise ValueError(f"Unknown resource kind: {kind}")
            self._last_error = None
            snapshot = self._commit_unlocked()
        logger.debug(f"Replaced {kind} with {len(records)} records")
        self._notify(snapshot)

    def record_success(self, message: str) -> None:
        """A mutation went through: show it and drop any stale error."""
        with self._lock:
            self._last_action = message
            self._last_error = None
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    def set_error(self, message: str) -> None:
        with self._lock:
            self._last_error = message
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    def clear_error(self) -> None:
        with self._lock:
            self._last_error = None
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    def begin_loading(self) -> None:
        with self._lock:
            self._containers_loading += 1
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    def end_loading(self) -> None:
        with self._lock:
            self._containers_loading = max(0, self._containers_loading - 1)
            snapshot = self._commit_unlocked()
        self._notify(snapshot)

    # --- Internals ---

    def _snapshot_unlocked(self) -> StoreSnapshot:
        return StoreSnapshot(
            resources=self._resources,
            host=self._host,
            last_action=self._last_action,
            last_error=self._last_error,
            loading=self._containers_loading > 0,
            degraded=self._client is None,
            version=self._version,
        )

    def _commit_unlocked(self) -> StoreSnapshot:
        # Assumes lock is held
        self._version += 1
        return self._snapshot_unlocked()

    def _notify(self, snapshot: StoreSnapshot) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"State subscriber {callback!r} failed")
