"""
Logging sink for replica-sync.

Every line goes to the configured log file as plain text and to stdout.
Records emitted through ``log_action`` carry the action and the path as
extras; on a terminal the console handler colors them by action:

  CREATE / UPDATE  green
  DELETE           orange
  MKDIR / RMDIR    light brown (paths too)
  errors           red, whole line
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from colorama import just_fix_windows_console

LOGGER_NAME = "replica_sync"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class Ansi:
    RESET = "\x1b[0m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    ORANGE = "\x1b[38;5;208m"
    WHITE = "\x1b[97m"
    LIGHT_BROWN = "\x1b[33m"


ACTION_COLORS = {
    "CREATE": Ansi.GREEN,
    "UPDATE": Ansi.GREEN,
    "DELETE": Ansi.ORANGE,
    "MKDIR": Ansi.LIGHT_BROWN,
    "RMDIR": Ansi.LIGHT_BROWN,
}

FILE_PATH_COLOR = Ansi.WHITE
DIR_PATH_COLOR = Ansi.LIGHT_BROWN

ACTION_SEPARATOR = " | "


def paint(text: str, color: str) -> str:
    return f"{color}{text}{Ansi.RESET}" if color else text


class ColorizingFormatter(logging.Formatter):
    """Colors the action word and path of ``log_action`` records; errors go red."""

    def __init__(self, use_color: bool, fmt: str = LOG_FORMAT, datefmt: str = LOG_DATEFMT):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.use_color:
            return line
        if record.levelno >= logging.ERROR:
            return paint(line, Ansi.RED)

        action = getattr(record, "action", None)
        if action not in ACTION_COLORS:
            return line

        head, found, tail = line.partition(action + ACTION_SEPARATOR)
        if not found:
            return line

        path = getattr(record, "path_text", None)
        if path:
            color = DIR_PATH_COLOR if getattr(record, "is_dir", False) else FILE_PATH_COLOR
            tail = tail.replace(path, paint(path, color), 1)
        return f"{head}{paint(action, ACTION_COLORS[action])}{ACTION_SEPARATOR}{tail}"


def _is_terminal(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, OSError, ValueError):
        return False


def setup_logger(log_path: Path, level: int = logging.INFO) -> logging.Logger:
    """
    Configure the application logger once; later calls return it unchanged.
    The log file's folder is created when missing.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    just_fix_windows_console()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColorizingFormatter(use_color=_is_terminal(sys.stdout)))

    for handler in (file_handler, console):
        handler.setLevel(level)
        logger.addHandler(handler)

    logger.info("Logging to: %s", log_path)
    return logger


def close_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def log_action(
    logger: logging.Logger,
    action: str,
    message: str,
    path: Optional[str] = None,
    is_dir: bool = False,
    level: int = logging.INFO,
) -> None:
    """Emit the single log line of one sync operation: ``ACTION | message``."""
    extra = {"action": action, "is_dir": is_dir}
    if path is not None:
        extra["path_text"] = path
    logger.log(level, "%s%s%s", action, ACTION_SEPARATOR, message, extra=extra)
