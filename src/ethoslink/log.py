"""
ethoslink.log — Structured JSON logging with per-request context.

Every record emitted under the ``ethoslink`` namespace carries:

    request_id  — fresh per IntentDispatcher.execute call
    intent      — intent name bound alongside the request id
    tier        — degradation tier (live/synthetic/static) when the
                  fallback controller logged it, else null
"""

import logging
import uuid
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
intent_var: ContextVar[str] = ContextVar("intent", default="")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s %(intent)s %(tier)s"


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.request_id = request_id_var.get("")
        record.intent = intent_var.get("")
        if not hasattr(record, "tier"):
            record.tier = None
        return True


def bind_request(intent: str = "") -> str:
    """Bind a fresh request id and *intent* to the current context; return the id."""
    rid = uuid.uuid4().hex[:12]
    request_id_var.set(rid)
    intent_var.set(intent)
    return rid


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure JSON structured logging for the ``ethoslink`` namespace."""
    from pythonjsonlogger.json import JsonFormatter

    logger = logging.getLogger("ethoslink")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = JsonFormatter(
            fmt=LOG_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields={"service": "ethoslink"},
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestContextFilter())
        logger.addHandler(handler)

    return logger
