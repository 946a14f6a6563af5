"""File logging and fetch observability.

The terminal belongs to the explorer UI, so log records go to a dated file
under ~/.hacktober/logs instead of stderr.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path

from . import __version__
from .config import LOG_DIR
from .models import RateLimitInfo

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"
PACKAGE_LOGGER = "hacktober_finder"


def log_location(log_dir: Path | None = None) -> Path:
    log_dir = log_dir or LOG_DIR
    return log_dir / f"hacktober-{date.today().isoformat()}.log"


def configure_logging(log_dir: Path | None = None, level: int = logging.DEBUG) -> Path:
    """Attach a file handler to the package logger and return the log path."""
    path = log_location(log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(pkg_logger.handlers):
        if isinstance(existing, logging.FileHandler):
            pkg_logger.removeHandler(existing)
            existing.close()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    pkg_logger.propagate = False

    logger.info("Hacktoberfest explorer started (version %s, log file %s)", __version__, path)
    return path


@dataclass(frozen=True)
class FetchRecord:
    endpoint: str
    query: str
    result_count: int
    duration_s: float
    rate_limit: RateLimitInfo | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchObserver:
    """Fire-and-forget sink for per-fetch records."""

    def __init__(self, log: logging.Logger | None = None, keep: int = 200):
        self.log = log or logging.getLogger(f"{PACKAGE_LOGGER}.fetch")
        self.records: deque[FetchRecord] = deque(maxlen=keep)

    def record(self, record: FetchRecord) -> None:
        self.records.append(record)
        try:
            fields = asdict(record)
            remaining = record.rate_limit.remaining if record.rate_limit else None
            if record.ok:
                self.log.info(
                    "GitHub API request %s query=%r results=%d took=%.2fs rate_remaining=%s",
                    record.endpoint, record.query, record.result_count, record.duration_s, remaining,
                    extra={"fetch": fields},
                )
            else:
                self.log.warning(
                    "GitHub API request %s query=%r failed after %.2fs: %s",
                    record.endpoint, record.query, record.duration_s, record.error,
                    extra={"fetch": fields},
                )
        except Exception:  # noqa: BLE001
            logger.debug("Failed to log fetch record", exc_info=True)
