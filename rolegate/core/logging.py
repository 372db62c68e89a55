"""Process-wide logging setup: stdout plus an optional size-rotated, age-pruned log file."""

import gzip
import logging
import os
import shutil
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rolegate.core.config import LogSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _gzip_namer(name: str) -> str:
    return name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


class AgedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that also deletes rotated files older than max_age_days."""

    def __init__(self, filename: str, max_age_days: int = 0, **kwargs) -> None:
        super().__init__(filename, **kwargs)
        self.max_age_days = max_age_days

    def doRollover(self) -> None:
        super().doRollover()
        self.prune_old_backups()

    def prune_old_backups(self) -> None:
        if self.max_age_days <= 0:
            return
        base = Path(self.baseFilename)
        cutoff = time.time() - self.max_age_days * 86400
        for path in base.parent.glob(base.name + ".*"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
            except FileNotFoundError:
                continue


def configure_logging(log_settings: LogSettings) -> None:
    """Configure the root logger from log settings. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(log_settings.level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_settings.filename:
        Path(log_settings.filename).parent.mkdir(parents=True, exist_ok=True)
        file_handler = AgedRotatingFileHandler(
            log_settings.filename,
            max_age_days=log_settings.max_age_days,
            maxBytes=log_settings.max_size_mb * 1024 * 1024,
            backupCount=log_settings.max_backups,
            encoding="utf-8",
        )
        if log_settings.compress:
            file_handler.namer = _gzip_namer
            file_handler.rotator = _gzip_rotator
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # uvicorn installs its own handlers; route its records through ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
