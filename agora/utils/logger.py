"""
Centralized logging configuration for Agora.

All loggers live under the "agora" namespace: "agora.deploy" for the
orchestrator, "agora.events" for emitted events, "agora.core.events" for
subscriber failures. Console output is colored; a plain-text file handler is
added when log_to_file is set.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

ROOT = "agora"
LOG_FILENAME = "agora.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class AgoraLogger:
    """Owns the handlers attached to the "agora" logger"""

    _initialized = False

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        force: bool = False,
    ):
        """
        Attach console (and optionally file) handlers.

        A second call is ignored unless `force` is set, in which case the
        previous handlers are closed and replaced.
        """
        if cls._initialized and not force:
            return

        root = logging.getLogger(ROOT)
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        root.addHandler(cls._console_handler(level))
        if log_to_file:
            root.addHandler(cls._file_handler(level, Path(log_dir or "logs")))

        cls._initialized = True

    @staticmethod
    def _console_handler(level: int) -> logging.Handler:
        handler = colorlog.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s",
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
        ))
        return handler

    @staticmethod
    def _file_handler(level: int, log_dir: Path) -> logging.Handler:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / LOG_FILENAME)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)-8s %(message)s",
            datefmt=DATE_FORMAT,
        ))
        return handler


def get_logger(name: str) -> logging.Logger:
    """Logger for a subsystem, e.g. get_logger("deploy") -> "agora.deploy"."""
    AgoraLogger.setup()
    return logging.getLogger(f"{ROOT}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """(Re)configure logging, replacing any earlier setup"""
    AgoraLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)
