"""Logging setup for the library app."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# Third-party loggers that are chatty at INFO during mirror pushes and LLM calls.
_QUIET_LOGGERS = ("urllib3", "watchdog")


def setup_logger(
    name: str = "epustaka",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return the application logger.

    Safe to call on every Streamlit rerun: handlers are attached only once.

    Args:
        name: Logger name. Module loggers obtained via get_logger() share it.
        level: Logging level, as an int or a name such as "DEBUG".
        log_file: Optional path to a log file. If None, logs to stderr only.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    log.setLevel(level)
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    log.addHandler(stream)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log


def get_logger(name: str = "epustaka") -> logging.Logger:
    """Return the application logger. Use after setup_logger has been called."""
    return logging.getLogger(name)
