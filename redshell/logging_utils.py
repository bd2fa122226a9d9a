"""Logging configuration and event helpers."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class StructuredJsonFormatter(logging.Formatter):
    """Formatter that emits one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        if hasattr(record, "event"):
            base["event"] = getattr(record, "event")
        if hasattr(record, "cid"):
            base["cid"] = getattr(record, "cid")
        return json.dumps(base, default=str)


def configure_logging(level: Optional[str] = None, *, json_lines: Optional[bool] = None) -> None:
    level_name = (level or os.environ.get("REDSHELL_LOG_LEVEL", "INFO")).upper()
    if json_lines is None:
        json_lines = os.environ.get("REDSHELL_LOG_JSON", "0") == "1"

    handler = logging.StreamHandler()
    if json_lines:
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    # basicConfig leaves an already configured root logger (e.g. under uvicorn or pytest) alone.
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), handlers=[handler])
    logging.getLogger("redshell").info("Logging configured", extra={"event": "logging.configured", "level": level_name})


def log_event(logger: logging.Logger, level: int, event: str, correlation_id: str, **kwargs: Any) -> None:
    extra = {"event": event, "cid": correlation_id}
    extra.update(kwargs)
    logger.log(level, f"{event} | cid={correlation_id} | " + " ".join(f"{k}={v}" for k, v in kwargs.items()), extra=extra)


__all__ = ["StructuredJsonFormatter", "configure_logging", "log_event"]
