from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional

LOG_FILENAME = "dispatch.log"
LOG_FORMAT = "[%(asctime)s | %(levelname)s | %(name)s] %(message)s"

# Third-party loggers kept at WARNING or above (openpyxl chatters while
# pandas reads .xlsx stock sheets)
QUIET_LIBRARIES = ("openpyxl", "numexpr")


def _level(name: str, default: int = logging.INFO) -> int:
    value = getattr(logging, str(name).upper(), None)
    return value if isinstance(value, int) else default


def configure_logging(
    log_root: Path,
    level: str = "INFO",
    log_to_file: bool = True,
    filename: str = LOG_FILENAME,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
    logger_levels: Optional[Mapping[str, str]] = None,
) -> logging.Logger:
    """
    Configure logging for a dispatch planner run.

    Args:
        log_root: Log output directory (only used when log_to_file is True).
        level: Root level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_to_file: If True, also emit logs to a rotating file under log_root.
        filename: Name of the rotating log file.
        max_bytes / backup_count: Rotation settings of the file handler.
        logger_levels: Per-logger overrides, e.g. {"DispatchAllocator": "DEBUG"}
            to see one line per allocated order without a DEBUG root.

    Returns:
        The root logger.
    """
    level_value = _level(level)
    overrides = {name: _level(lvl) for name, lvl in (logger_levels or {}).items()}
    # Handlers must pass the most verbose override through
    handler_level = min([level_value, *overrides.values()])

    logger = logging.getLogger()
    logger.setLevel(level_value)

    # Prevent duplicate handlers when re-configuring
    _remove_existing_handlers(logger)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    ch = logging.StreamHandler()
    ch.setLevel(handler_level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_to_file:
        logs_dir = Path(log_root)
        logs_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            logs_dir / filename, maxBytes=max_bytes, backupCount=backup_count
        )
        fh.setLevel(handler_level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    for noisy in QUIET_LIBRARIES:
        logging.getLogger(noisy).setLevel(max(level_value, logging.WARNING))

    for name, value in overrides.items():
        logging.getLogger(name).setLevel(value)

    logger.debug("Logging configured (level=%s, overrides=%s)", level, overrides)
    return logger


def _remove_existing_handlers(logger: logging.Logger) -> None:
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
