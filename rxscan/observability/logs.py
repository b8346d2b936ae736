import json
import logging
from datetime import datetime, timezone
from typing import Any

_LOGGER_NAME = "rxscan"

class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", record.getMessage()[:30] or "log"),
        }
        # Merge any structured fields passed via extra={"fields": {...}}
        fields = getattr(record, "fields", {})
        if isinstance(fields, dict):
            base.update(fields)
        # Raw message is dropped; it may carry prescription text
        return json.dumps(base, ensure_ascii=False, default=str)

def get_logger() -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    # other handlers (e.g. test log capture) may already be attached
    if not any(isinstance(h.formatter, _JsonFormatter) for h in logger.handlers):
        logger.setLevel(logging.INFO)
        h = logging.StreamHandler()
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.propagate = False
    return logger

def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """
    Log a structured, PII-safe JSON line.
    DO NOT pass OCR text, patient names or medication names; only counts,
    flags, codes and ids.
    """
    get_logger().log(level, "", extra={"event": event, "fields": fields})
