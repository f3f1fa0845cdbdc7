"""
Refresh and mutation scheduling for the StateStore.

SyncOrchestrator turns every store entry point into an asyncio task, awaits
the engine call inside it and commits the outcome back into the store:

  refresh(kind)      list_<kind>() -> replace list, clear error
                                   -> on failure keep list, set error
  mutate(verb, id)   <verb>_container(id) -> last action, clear error,
                                             then refresh containers
                                          -> on failure set error only

Tasks are tracked so callers can await them (wait_idle) instead of guessing
at timing. Engine errors stop here; nothing is raised to the caller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from .errors import ConnectionUnavailable, EngineCallFailed, EngineError

logger = logging.getLogger(__name__)

RESOURCE_KINDS = ("containers", "images", "volumes")

PAST_TENSE = {"start": "Started", "stop": "Stopped"}


def describe_failure(error: Exception) -> str:
    """The underlying cause, without the operation prefix EngineCallFailed adds."""
    if isinstance(error, EngineCallFailed):
        return str(error.cause)
    return str(error)


class SyncOrchestrator:
    def __init__(self, store: Any, client: Any,
                 call_timeout: Optional[float] = None,
                 dedupe_refreshes: bool = False):
        self.store = store
        self.client = client
        self.call_timeout = call_timeout
        self.dedupe_refreshes = dedupe_refreshes
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def refresh(self, kind: str, force: bool = False) -> Optional[asyncio.Task]:
        """Schedule a list of kind. force skips the in-flight guard."""
        if kind not in RESOURCE_KINDS:
            raise ValueError(f"Unknown resource kind: {kind}")
        if self.client is None:
            self._unavailable(f"refresh {kind}")
            return None

        if self.dedupe_refreshes and not force:
            current = self._in_flight.get(kind)
            if current is not None and not current.done():
                logger.debug(f"Refresh of {kind} already in flight, reusing it")
                return current

        loop = asyncio.get_running_loop()
        task = self._spawn(loop, self._refresh(kind), f"refresh-{kind}")
        self._in_flight[kind] = task
        if kind == "containers":
            self.store.begin_loading()
            task.add_done_callback(lambda _: self.store.end_loading())
        return task

    def mutate(self, verb: str, container_id: str) -> Optional[asyncio.Task]:
        if verb not in PAST_TENSE:
            raise ValueError(f"Unknown container action: {verb}")
        if self.client is None:
            self._unavailable(f"{verb} container {container_id}")
            return None

        loop = asyncio.get_running_loop()
        return self._spawn(loop, self._mutate(verb, container_id), f"{verb}-{container_id}")

    async def wait_idle(self) -> None:
        """Wait for every tracked task, including refreshes spawned by mutations."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _refresh(self, kind: str) -> bool:
        fetch = getattr(self.client, f"list_{kind}")
        try:
            records = await self._call(f"list {kind}", fetch)
        except EngineError as e:
            self.store.set_error(f"Failed to list {kind}: {describe_failure(e)}")
            return False
        self.store.update_resources(kind, records)
        return True

    async def _mutate(self, verb: str, container_id: str) -> bool:
        action = getattr(self.client, f"{verb}_container")
        try:
            await self._call(f"{verb} container", action, container_id)
        except EngineError as e:
            self.store.set_error(f"Failed to {verb} container {container_id}: {describe_failure(e)}")
            return False

        logger.info(f"{PAST_TENSE[verb]} container {container_id}")
        self.store.record_success(f"{PAST_TENSE[verb]} container {container_id}")
        # A refresh already in flight may have read the engine before the mutation
        self.store.refresh_containers(force=True)
        return True

    async def _call(self, operation: str, func: Callable[..., Awaitable], *args: str) -> Any:
        resource_id = args[0] if args else None

        async def invoke():
            try:
                return await func(*args)
            except EngineError:
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {e}", exc_info=True)
                raise EngineCallFailed(operation, e, resource_id) from e

        if self.call_timeout is None:
            return await invoke()
        # invoke() wraps the client's own timeouts, so only the deadline gets here
        try:
            return await asyncio.wait_for(invoke(), self.call_timeout)
        except asyncio.TimeoutError:
            logger.error(f"{operation} timed out after {self.call_timeout}s")
            raise EngineCallFailed(operation, f"timed out after {self.call_timeout}s", resource_id)

    def _spawn(self, loop: asyncio.AbstractEventLoop, coro, name: str) -> asyncio.Task:
        task = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        for kind, current in list(self._in_flight.items()):
            if current is task:
                del self._in_flight[kind]

    def _unavailable(self, operation: str) -> None:
        error = ConnectionUnavailable()
        logger.warning(f"Cannot {operation}: {error}")
        self.store.set_error(str(error))
