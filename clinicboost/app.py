"""Application bootstrap: logging for the cache package and the cache registry."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clinicboost.cache.registry import CacheRegistry, create_registry
from clinicboost.config import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_NAME = "cache.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

_CONSOLE_HANDLER = "clinicboost-console"
_FILE_HANDLER = "clinicboost-file"


def setup_logging(log_level: str, data_dir: Path) -> logging.Logger:
    """Attach console and rotating-file handlers to the ``clinicboost`` logger.

    Only the package logger is configured, so an embedding application
    keeps control of the root logger. Calling this again updates the level
    without adding handlers.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR). Unknown names mean INFO.
        data_dir: Base data directory; the log file is ``data_dir/logs/cache.log``.

    Returns:
        The configured package logger.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    package_logger = logging.getLogger("clinicboost")
    package_logger.setLevel(level)
    installed = {h.get_name(): h for h in package_logger.handlers}
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if _CONSOLE_HANDLER not in installed:
        console = logging.StreamHandler()
        console.set_name(_CONSOLE_HANDLER)
        installed[_CONSOLE_HANDLER] = console
        package_logger.addHandler(console)

    if _FILE_HANDLER not in installed:
        log_dir = data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS
        )
        file_handler.set_name(_FILE_HANDLER)
        installed[_FILE_HANDLER] = file_handler
        package_logger.addHandler(file_handler)

    for name in (_CONSOLE_HANDLER, _FILE_HANDLER):
        installed[name].setLevel(level)
        installed[name].setFormatter(formatter)
    return package_logger


def initialize(settings: Settings | None = None) -> CacheRegistry:
    """Prepare the data directory and logging, then build the cache registry.

    The registry's expiry sweeps are not started here; enter it with
    ``async with`` (or call ``start()``) once an event loop is running.
    """
    settings = settings or get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(settings.log_level, settings.data_dir)

    registry = create_registry(settings)
    logger.info(
        "ClinicBoost caches initialized (%s)",
        ", ".join(f"{name}={cache.config.max_size}" for name, cache in registry.caches().items()),
    )
    return registry
