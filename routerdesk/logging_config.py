# routerdesk/logging_config.py
"""
Root logger setup for the console.

One line format everywhere, with the thread name in it: streamed replies are
read on a worker QThread and their log lines are only useful next to that.
The console handler writes to stderr because stdout carries the reply text.
"""
from __future__ import annotations
import logging, logging.handlers, sys
from pathlib import Path
from typing import Optional, TextIO
from .constants import DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# requests' transport stack logs every connection at DEBUG
QUIET_LOGGERS = ("urllib3", "requests", "charset_normalizer")

LEVEL_COLORS = {
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[41m",
}
RESET = "\x1b[0m"


class LineFormatter(logging.Formatter):
    def __init__(self, color: bool = False):
        super().__init__(LINE_FORMAT, DATE_FORMAT)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        code = LEVEL_COLORS.get(record.levelname) if self.color else None
        return f"{code}{line}{RESET}" if code else line


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def init_logging(log_file: Path, level: str = "INFO", *, max_bytes: int = DEFAULT_LOG_MAX_BYTES,
                 backup_count: int = DEFAULT_LOG_BACKUP_COUNT, also_console: bool = True,
                 console: Optional[TextIO] = None) -> Path:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    root = logging.getLogger()
    # re-init replaces, never stacks
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(lvl)

    fh = logging.handlers.RotatingFileHandler(str(log_file), maxBytes=max_bytes, backupCount=backup_count,
                                              encoding="utf-8", delay=True)
    fh.setFormatter(LineFormatter())
    root.addHandler(fh)

    if also_console:
        stream = console or sys.stderr
        ch = logging.StreamHandler(stream)
        ch.setFormatter(LineFormatter(color=_is_tty(stream)))
        root.addHandler(ch)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    install_excepthook()
    logging.getLogger(__name__).info("Logging initialized → %s (level %s)", log_file, logging.getLevelName(lvl))
    return log_file


def log_uncaught(exc_type, exc, tb) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logging.getLogger("uncaught").error("Uncaught exception", exc_info=(exc_type, exc, tb))
    sys.stderr.write(f"\nFATAL: {exc_type.__name__}: {exc}\n")
    sys.stderr.flush()


def install_excepthook() -> None:
    sys.excepthook = log_uncaught
