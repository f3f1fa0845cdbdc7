"""
Docker engine client used by the synchronization core.

This module provides the EngineClient contract the StateStore depends on and
a docker-py backed implementation of it:
  - Listing containers, images and volumes as doctainr records
  - Starting and stopping containers

docker-py is blocking, so every SDK call runs in a worker thread via
asyncio.to_thread and the event loop never waits on a socket.

Error Handling:
  - Every SDK failure is re-raised as EngineCallFailed (operation + cause)
  - Connection failures at startup return None from connect_engine()
    instead of raising, which puts the store in degraded mode

Dependencies:
  - docker>=7.0.0 (docker-py client)
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import docker

from .errors import EngineCallFailed, EngineError
from .model import (
    DEFAULT_ID_LENGTH, UNKNOWN_SIZE, ContainerRecord, ImageRecord, VolumeRecord,
    clean_name, container_state_from_engine, format_ports, format_size,
    short_id, split_repo_tag,
)

logger = logging.getLogger(__name__)


class EngineClient(Protocol):
    """Operations the StateStore needs from a container engine."""

    async def list_containers(self) -> List[ContainerRecord]: ...

    async def list_images(self) -> List[ImageRecord]: ...

    async def list_volumes(self) -> List[VolumeRecord]: ...

    async def start_container(self, container_id: str) -> None: ...

    async def stop_container(self, container_id: str) -> None: ...


def engine_call(operation: str) -> Callable:
    """
    Decorator for blocking docker-py calls.

    Runs the wrapped method in a worker thread and translates any exception
    into EngineCallFailed, logging it once at the boundary.

    Usage:
        @engine_call("list containers")
        def _list_containers(self) -> List[ContainerRecord]:
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs) -> Any:
            try:
                return await asyncio.to_thread(func, self, *args, **kwargs)
            except EngineError:
                raise
            except Exception as e:
                resource_id = args[0] if args else None
                logger.error(f"Docker operation failed in {func.__name__}: {e}")
                raise EngineCallFailed(operation, e, resource_id) from e
        return wrapper
    return decorator


def container_from_attrs(attrs: Dict[str, Any], id_length: int = DEFAULT_ID_LENGTH) -> ContainerRecord:
    """Build a record from the engine's container list entry."""
    return ContainerRecord(
        id=short_id(attrs.get('Id', ''), id_length),
        name=clean_name(attrs.get('Names') or [attrs.get('Name', '')]),
        image=attrs.get('Image') or 'unknown',
        status=attrs.get('Status') or '',
        ports=format_ports(attrs.get('Ports')),
        state=container_state_from_engine(attrs.get('State')),
    )


def image_from_attrs(attrs: Dict[str, Any]) -> ImageRecord:
    repo_tags = attrs.get('RepoTags') or []
    repository, tag = split_repo_tag(repo_tags[0] if repo_tags else None)
    return ImageRecord(
        id=attrs.get('Id', ''),
        repository=repository,
        tag=tag,
        size=format_size(attrs.get('Size', 0)),
    )


def volume_from_attrs(attrs: Dict[str, Any]) -> VolumeRecord:
    usage = attrs.get('UsageData') or {}
    size = usage.get('Size', -1)
    return VolumeRecord(
        name=attrs.get('Name', ''),
        driver=attrs.get('Driver', 'local'),
        mountpoint=attrs.get('Mountpoint', 'n/a'),
        size=format_size(size) if isinstance(size, int) and size >= 0 else UNKNOWN_SIZE,
    )


class DockerEngineClient:
    """EngineClient backed by a docker.DockerClient."""

    def __init__(self, client: 'docker.DockerClient', id_length: int = DEFAULT_ID_LENGTH):
        self.client = client
        self.id_length = id_length

    @engine_call("list containers")
    def list_containers(self) -> List[ContainerRecord]:
        raw = self.client.containers.list(all=True, sparse=True)
        return [container_from_attrs(c.attrs, self.id_length) for c in raw]

    @engine_call("list images")
    def list_images(self) -> List[ImageRecord]:
        return [image_from_attrs(i.attrs) for i in self.client.images.list()]

    @engine_call("list volumes")
    def list_volumes(self) -> List[VolumeRecord]:
        return [volume_from_attrs(v.attrs) for v in self.client.volumes.list()]

    @engine_call("start container")
    def start_container(self, container_id: str) -> None:
        self.client.containers.get(container_id).start()

    @engine_call("stop container")
    def stop_container(self, container_id: str) -> None:
        self.client.containers.get(container_id).stop()

    def close(self) -> None:
        self.client.close()


def connect_engine(host: str, timeout: float = 5.0,
                   id_length: int = DEFAULT_ID_LENGTH) -> Optional[DockerEngineClient]:
    """
    Connect to the engine at host once, at session start.

    Returns None when the daemon cannot be reached; callers treat that as
    degraded mode rather than an error.
    """
    client = None
    try:
        client = docker.DockerClient(base_url=host, timeout=max(1, int(timeout)))
        client.ping()
    except Exception as e:
        logger.warning(f"Failed to connect to Docker at {host}: {e}")
        if client is not None:
            client.close()
        return None
    logger.info(f"Connected to Docker at {host}")
    return DockerEngineClient(client, id_length=id_length)
