"""Structured Logging — one JSON object per record, voting context attached.

Invariants:
    - Every record carries timestamp (record creation time, UTC), level, logger, message
    - Voting context passed via `extra=` (resolution_id, scope_id, member_id,
      error_code, attempt, path) is emitted only when set
    - setup_logging is idempotent: a second call replaces, never duplicates, its handler

Design Decisions:
    - Stdlib logging + a small formatter: log shippers read JSON lines directly
    - "text" format for local runs and tests, where JSON is noise
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "resolution_id", "scope_id", "member_id", "error_code", "attempt", "path",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Loggers too chatty at INFO for a service log
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")

_HANDLER_NAME = "coopvote"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the service handler on the root logger."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
