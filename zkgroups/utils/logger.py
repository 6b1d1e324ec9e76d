"""
Logging for zkgroups.

Every module logs through a child of the "zkgroups" logger, e.g.
"zkgroups.groups" or "zkgroups.storage.sqlite". Output goes to stderr so that
CLI results printed on stdout stay machine readable; a plain-text log file
under the configured log directory can be added on top.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "zkgroups"
LOG_FILE = "zkgroups.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

_configured = False


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
    )
    return handler


def _file_handler(level: int, log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def reset_logging():
    """Close and detach every handler installed by setup_logging()."""
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _configured = False


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """
    Configure the "zkgroups" logger tree, replacing any earlier setup.

    Args:
        level: Level number or name ("DEBUG", "info", ...)
        log_dir: Directory of the log file (default ./logs)
        log_to_file: Also write to <log_dir>/zkgroups.log

    Raises:
        ValueError: If `level` is not a known level name
    """
    global _configured
    numeric_level = _resolve_level(level)
    reset_logging()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(numeric_level)
    root.addHandler(_console_handler(numeric_level))
    if log_to_file:
        root.addHandler(_file_handler(numeric_level, Path(log_dir) if log_dir else Path("logs")))

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for one subsystem; configures defaults on first use."""
    if not _configured:
        setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
