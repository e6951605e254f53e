"""
JSON log output for tierflow.

tierflow is a library, so it never configures logging on import. A host
calls setup_logging() once (bootstrap() does it by default) and every
record then goes to the given stream as one JSON object per line, tagged
with the host's component name.

Structured fields are attached through log_fields():

    logger.info("Local inference done", extra=log_fields(tier="LOCAL", latency_ms=12.5))

The tier and latency fields are lifted to the top level of the record so
log queries can filter on them directly; anything else lands under "extra".
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

_TOP_LEVEL_FIELDS = ("tier", "latency_ms")
_QUIET_LOGGERS = ("openai", "httpx", "httpcore")


def log_fields(**fields: Any) -> dict[str, Any]:
    """Wrap structured fields for the `extra=` argument of a logging call."""
    return {"_extra": fields}


class JSONFormatter(logging.Formatter):

    def __init__(self, component_name: str) -> None:
        super().__init__()
        self._component = component_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self._component,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        fields = dict(getattr(record, "_extra", None) or {})
        for name in _TOP_LEVEL_FIELDS:
            if name in fields:
                entry[name] = fields.pop(name)
        if fields:
            entry["extra"] = fields

        if record.exc_info and record.exc_info[1]:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
    component_name: str,
    level_name: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Route all records through a single JSON handler on the root logger.

    The level comes from `level_name`, then LOG_LEVEL, then INFO. Unknown
    level names fall back to INFO. Returns the component's own logger.
    """
    level_name = (level_name or os.environ.get("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter(component_name))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # SDK request logs would duplicate the tier logs
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    component_logger = logging.getLogger(component_name)
    component_logger.debug("JSON logging enabled", extra=log_fields(level=level_name))
    return component_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
