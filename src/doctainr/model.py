"""
Data models and formatting helpers for doctainr state.

This module defines the records that describe Docker resources and the
snapshots the StateStore hands out to readers. Used throughout the package
for:
  - Type safety and IDE autocomplete
  - Clear separation of data (models) from logic (engine/state/sync)
  - Immutable values that can be shared between tasks without copying

Data Classes:
  - ContainerRecord: container metadata (short id, name, image, ports, state)
  - ImageRecord: image metadata (id, repository, tag, size)
  - VolumeRecord: volume metadata (name, driver, mount point, size)
  - ResourceSnapshot: the three resource lists held by the store
  - StoreSnapshot: ResourceSnapshot plus the UI-facing fields

Formatting:
  - format_size: bytes to "100B" / "1.0KB" / "1.0MB" / "1.0GB"
  - format_ports: engine port list to "8080:80, 443/tcp" or "none"
  - split_repo_tag: "registry:5000/app:1.2" to ("registry:5000/app", "1.2")
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

NONE_SENTINEL = "none"
UNKNOWN_SIZE = "unknown"
DEFAULT_ID_LENGTH = 12

SIZE_UNITS = ("KB", "MB", "GB")


class ContainerState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"

    @property
    def label(self) -> str:
        return "Running" if self is ContainerState.RUNNING else "Stopped"

    @property
    def css_class(self) -> str:
        return self.value

    @property
    def action_label(self) -> str:
        """Verb for the button that moves a container out of this state."""
        return "Stop" if self is ContainerState.RUNNING else "Start"

    def toggled(self) -> "ContainerState":
        if self is ContainerState.RUNNING:
            return ContainerState.STOPPED
        return ContainerState.RUNNING


@dataclass(frozen=True)
class ContainerRecord:
    id: str
    name: str
    image: str
    status: str
    ports: str = NONE_SENTINEL
    state: ContainerState = ContainerState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state is ContainerState.RUNNING

    def with_state(self, state: ContainerState, status: Optional[str] = None) -> "ContainerRecord":
        return replace(self, state=state, status=status if status is not None else self.status)


@dataclass(frozen=True)
class ImageRecord:
    id: str
    repository: str = NONE_SENTINEL
    tag: str = NONE_SENTINEL
    size: str = "0B"


@dataclass(frozen=True)
class VolumeRecord:
    name: str
    driver: str
    mountpoint: str
    size: str = UNKNOWN_SIZE


@dataclass(frozen=True)
class ResourceSnapshot:
    containers: Tuple[ContainerRecord, ...] = ()
    images: Tuple[ImageRecord, ...] = ()
    volumes: Tuple[VolumeRecord, ...] = ()

    def find_container(self, container_id: str) -> Optional[ContainerRecord]:
        for container in self.containers:
            if container.id == container_id:
                return container
        return None


@dataclass(frozen=True)
class StoreSnapshot:
    """Everything a view needs, read under a single lock acquisition."""
    resources: ResourceSnapshot = field(default_factory=ResourceSnapshot)
    host: str = ""
    last_action: Optional[str] = None
    last_error: Optional[str] = None
    loading: bool = False
    degraded: bool = False
    version: int = 0

    @property
    def containers(self) -> Tuple[ContainerRecord, ...]:
        return self.resources.containers

    @property
    def images(self) -> Tuple[ImageRecord, ...]:
        return self.resources.images

    @property
    def volumes(self) -> Tuple[VolumeRecord, ...]:
        return self.resources.volumes


def format_size(size_bytes: int) -> str:
    """Human readable size; exact powers of 1024 roll over to the larger unit."""
    size = float(size_bytes or 0)
    if size < 1024:
        return f"{int(size)}B"
    unit = SIZE_UNITS[0]
    for candidate in SIZE_UNITS:
        size /= 1024
        unit = candidate
        if round(size, 1) < 1024:
            break
    return f"{size:.1f}{unit}"


def container_state_from_engine(value: Optional[str]) -> ContainerState:
    if value == "running":
        return ContainerState.RUNNING
    return ContainerState.STOPPED


def short_id(engine_id: str, length: int = DEFAULT_ID_LENGTH) -> str:
    return (engine_id or "")[:length]


def clean_name(names: Iterable[str]) -> str:
    # Engine names come back as "/name"
    for name in names or ():
        if name:
            return name.lstrip("/")
    return NONE_SENTINEL


def format_ports(ports: Optional[List[Dict[str, Any]]]) -> str:
    rendered: List[str] = []
    for port in ports or ():
        private = port.get("PrivatePort")
        if private is None:
            continue
        public = port.get("PublicPort")
        if public:
            text = f"{public}:{private}"
        else:
            text = f"{private}/{port.get('Type', 'tcp')}"
        if text not in rendered:
            rendered.append(text)
    return ", ".join(rendered) if rendered else NONE_SENTINEL


def split_repo_tag(reference: Optional[str]) -> Tuple[str, str]:
    if not reference or reference == "<none>:<none>":
        return NONE_SENTINEL, NONE_SENTINEL
    repository, tag = reference, "latest"
    colon = reference.rfind(":")
    if colon > reference.rfind("/"):
        repository, tag = reference[:colon], reference[colon + 1:]
    if repository in ("", "<none>"):
        repository = NONE_SENTINEL
    if tag in ("", "<none>"):
        tag = NONE_SENTINEL
    return repository, tag
