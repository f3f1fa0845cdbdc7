"""
Session lifecycle: one StateStore per application run.

open_session() does what the application does once at startup:
  1. Load configuration and set up logging
  2. Resolve the engine host (DOCKER_HOST > config file > local socket)
  3. Connect the engine client (live or mock); a failed connection yields a
     degraded store instead of an exception
  4. Create the StateStore, issue the initial refresh_all() and start the
     periodic scheduler

Session.close() stops the scheduler and waits for in-flight work. Nothing is
persisted between sessions.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from . import configure_logging
from .config import AppConfig, ConfigManager, resolve_docker_host, use_mock_engine
from .engine import EngineClient, connect_engine
from .mock import MockEngineClient
from .scheduler import RefreshScheduler
from .state import StateStore

logger = logging.getLogger(__name__)


@dataclass
class Session:
    store: StateStore
    config: AppConfig
    scheduler: Optional[RefreshScheduler] = None

    async def close(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()
        await self.store.wait_idle()
        client = self.store.client
        close = getattr(client, "close", None)
        if callable(close):
            await asyncio.to_thread(close)
        logger.info("Session closed")


def build_client(config: AppConfig, host: str) -> Optional[EngineClient]:
    if use_mock_engine(config.engine):
        logger.info("Using mock engine")
        return MockEngineClient()
    return connect_engine(host, timeout=config.engine.connect_timeout,
                          id_length=config.engine.id_length)


async def open_session(config: Optional[AppConfig] = None,
                       client: Optional[EngineClient] = None,
                       setup_logging: bool = True) -> Session:
    """
    Start a session. Pass client to skip connecting (tests, embedding).

    Must be awaited inside the event loop that will run the store's tasks.
    """
    if config is None:
        config = ConfigManager().get_config()
    if setup_logging:
        configure_logging(config.logging.level, config.logging.file_path,
                          config.logging.max_size_mb, config.logging.backup_count)

    host = resolve_docker_host(config.engine)
    if client is None:
        # docker-py connects and pings synchronously
        client = await asyncio.to_thread(build_client, config, host)

    store = StateStore(
        client,
        host=host,
        call_timeout=config.sync.call_timeout,
        dedupe_refreshes=config.sync.dedupe_refreshes,
    )
    store.refresh_all()

    scheduler = None
    if config.scheduler.enabled and not store.degraded:
        scheduler = RefreshScheduler(
            store,
            containers_interval=config.scheduler.containers_interval,
            others_interval=config.scheduler.others_interval,
        )
        # The initial refresh_all() already covered the first tick
        scheduler.mark_refreshed()
        scheduler.start()

    logger.info(f"Session opened for {host} (degraded={store.degraded})")
    return Session(store=store, config=config, scheduler=scheduler)
