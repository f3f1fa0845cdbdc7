"""
Offline engine client with demo data.

MockEngineClient behaves like a tiny engine: start/stop flip the state of its
own records, and the StateStore only sees the change through the refresh
that follows every successful mutation. The store never flips state locally,
so both the live and the mock variant share the authoritative-refresh policy.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from .errors import EngineCallFailed
from .model import ContainerRecord, ContainerState, ImageRecord, VolumeRecord

logger = logging.getLogger(__name__)


def mock_containers() -> List[ContainerRecord]:
    return [
        ContainerRecord(
            id="1a2b3c4d", name="api-gateway", image="nginx:1.25",
            status="Up 12 minutes", ports="80:8080", state=ContainerState.RUNNING,
        ),
        ContainerRecord(
            id="5e6f7g8h", name="payments", image="rust-payments:local",
            status="Exited (0) 2 hours ago", ports="none", state=ContainerState.STOPPED,
        ),
        ContainerRecord(
            id="9i0j1k2l", name="redis", image="redis:7",
            status="Up 4 days", ports="6379:6379", state=ContainerState.RUNNING,
        ),
    ]


def mock_images() -> List[ImageRecord]:
    return [
        ImageRecord(id="sha256:aa11", repository="nginx", tag="1.25", size="146MB"),
        ImageRecord(id="sha256:bb22", repository="redis", tag="7", size="117MB"),
        ImageRecord(id="sha256:cc33", repository="rust-payments", tag="local", size="512MB"),
    ]


def mock_volumes() -> List[VolumeRecord]:
    return [
        VolumeRecord(
            name="containr-cache", driver="local",
            mountpoint="/var/lib/docker/volumes/containr-cache", size="2.4GB",
        ),
        VolumeRecord(
            name="postgres-data", driver="local",
            mountpoint="/var/lib/docker/volumes/postgres-data", size="8.1GB",
        ),
    ]


class MockEngineClient:
    """In-memory EngineClient; latency is in seconds per call."""

    def __init__(self, containers: Optional[Iterable[ContainerRecord]] = None,
                 images: Optional[Iterable[ImageRecord]] = None,
                 volumes: Optional[Iterable[VolumeRecord]] = None,
                 latency: float = 0.0):
        self._containers: Dict[str, ContainerRecord] = {
            c.id: c for c in (mock_containers() if containers is None else containers)
        }
        self._images = list(mock_images() if images is None else images)
        self._volumes = list(mock_volumes() if volumes is None else volumes)
        self.latency = latency

    async def _pause(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def list_containers(self) -> List[ContainerRecord]:
        await self._pause()
        return list(self._containers.values())

    async def list_images(self) -> List[ImageRecord]:
        await self._pause()
        return list(self._images)

    async def list_volumes(self) -> List[VolumeRecord]:
        await self._pause()
        return list(self._volumes)

    async def start_container(self, container_id: str) -> None:
        await self._pause()
        self._transition(container_id, ContainerState.RUNNING, "start container", "Up Less than a second")

    async def stop_container(self, container_id: str) -> None:
        await self._pause()
        self._transition(container_id, ContainerState.STOPPED, "stop container", "Exited (0) Less than a second ago")

    def _transition(self, container_id: str, state: ContainerState,
                    operation: str, status: str) -> None:
        container = self._containers.get(container_id)
        if container is None:
            raise EngineCallFailed(operation, f"No such container: {container_id}", container_id)
        self._containers[container_id] = container.with_state(state, status)
        logger.debug(f"Mock engine moved {container_id} to {state.value}")
