"""
doctainr - resource synchronization core for a Docker desktop shell.

This package owns the canonical in-memory view of a local Docker engine
(containers, images, volumes) and keeps it in sync through asynchronous
refresh and start/stop operations. Rendering is left to whatever
presentation layer reads the store.

Main Components:
  - model.py: Records (ContainerRecord, ImageRecord, VolumeRecord) and formatting
  - engine.py: EngineClient protocol and the docker-py backed client
  - mock.py: Offline engine client with demo data
  - state.py: StateStore, the lock-guarded state holder
  - sync.py: SyncOrchestrator, task scheduling and result reconciliation
  - scheduler.py: Periodic per-kind refresh loop
  - session.py: Session wiring (config, logging, connection, store)

Usage:
  session = await doctainr.session.open_session()
  session.store.set_container_state("1a2b3c4d", ContainerState.RUNNING)

Dependencies:
  - docker>=7.0.0
  - PyYAML
  - Python 3.10+
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

__version__ = "0.1.0"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_log_path() -> str:
    """
    Get the log file path following XDG Base Directory spec.

    Returns XDG_DATA_HOME/doctainr/logs/doctainr.log with fallback to /tmp.
    Creates directory if it doesn't exist.

    Returns:
        str: Absolute path to log file (/tmp/doctainr.log as fallback)
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if not xdg_data_home:
        xdg_data_home = Path.home() / '.local' / 'share'
    else:
        xdg_data_home = Path(xdg_data_home)

    log_dir = xdg_data_home / 'doctainr' / 'logs'

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / 'doctainr.log')
    except (PermissionError, OSError):
        return '/tmp/doctainr.log'


def configure_logging(level: str = "INFO", file_path: Optional[str] = None,
                      max_size_mb: int = 10, backup_count: int = 5) -> logging.Handler:
    """
    Attach a rotating file handler to the package logger.

    Calling it again replaces the handler installed by the previous call,
    so sessions can be reopened without duplicating log lines.
    """
    package_logger = logging.getLogger(__name__)
    for handler in list(package_logger.handlers):
        if getattr(handler, '_doctainr_handler', False):
            package_logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        file_path or get_log_path(),
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding='utf-8',
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._doctainr_handler = True
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
