"""
Dashboard statistics derived from a store snapshot.

Provides the overview numbers a dashboard shows next to the engine host:
running and stopped containers, image and volume counts, and per-image
container usage.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

from .model import ContainerState, StoreSnapshot


@dataclass(frozen=True)
class ResourceSummary:
    host: str
    running: int = 0
    stopped: int = 0
    images: int = 0
    volumes: int = 0
    containers_by_image: Dict[str, int] = field(default_factory=dict)

    @property
    def total_containers(self) -> int:
        return self.running + self.stopped


def summarize(snapshot: StoreSnapshot) -> ResourceSummary:
    states = Counter(c.state for c in snapshot.containers)
    by_image = Counter(c.image for c in snapshot.containers)
    return ResourceSummary(
        host=snapshot.host,
        running=states[ContainerState.RUNNING],
        stopped=states[ContainerState.STOPPED],
        images=len(snapshot.images),
        volumes=len(snapshot.volumes),
        containers_by_image=dict(by_image),
    )
