import asyncio

import pytest

from doctainr.model import ContainerRecord, ContainerState, ImageRecord, VolumeRecord


def make_container(id, name=None, state=ContainerState.STOPPED, image="nginx:latest"):
    return ContainerRecord(
        id=id,
        name=name or f"name-{id}",
        image=image,
        status="Up 1 minute" if state is ContainerState.RUNNING else "Exited (0)",
        ports="none",
        state=state,
    )


class FakeEngine:
    """EngineClient double: records calls and flips its own container state."""

    def __init__(self, containers=None, images=None, volumes=None):
        self.containers = list(containers or [])
        self.images = list(images or [])
        self.volumes = list(volumes or [])
        self.calls = []
        self.failures = {}

    def fail(self, operation, error):
        self.failures[operation] = error

    def count(self, operation):
        return sum(1 for call in self.calls if call[0] == operation)

    async def _record(self, operation, *args):
        self.calls.append((operation,) + args)
        await asyncio.sleep(0)
        error = self.failures.get(operation)
        if error is not None:
            raise error

    async def list_containers(self):
        await self._record("list_containers")
        return list(self.containers)

    async def list_images(self):
        await self._record("list_images")
        return list(self.images)

    async def list_volumes(self):
        await self._record("list_volumes")
        return list(self.volumes)

    async def start_container(self, container_id):
        await self._record("start_container", container_id)
        self._set_state(container_id, ContainerState.RUNNING)

    async def stop_container(self, container_id):
        await self._record("stop_container", container_id)
        self._set_state(container_id, ContainerState.STOPPED)

    def _set_state(self, container_id, state):
        self.containers = [
            c.with_state(state) if c.id == container_id else c for c in self.containers
        ]


@pytest.fixture
def engine():
    return FakeEngine(
        containers=[make_container("c1"), make_container("c2", state=ContainerState.RUNNING)],
        images=[ImageRecord(id="sha256:aa11", repository="nginx", tag="1.25", size="146.0MB")],
        volumes=[VolumeRecord(name="data", driver="local", mountpoint="/var/lib/docker/volumes/data")],
    )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.delenv("DOCKER_HOST", raising=False)
    monkeypatch.delenv("DOCTAINR_MOCK", raising=False)
    monkeypatch.setenv("DOCTAINR_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
