"""Logging setup: Rich console output plus an optional log file."""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "multipart")


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure the ``papertrail`` root logging handlers.

    Safe to call more than once; previously installed handlers are replaced.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        log_file: If set, also append plain-text records to this file
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = RichHandler(rich_tracebacks=True, show_path=False)
    console.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    root.setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
