import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

CONTEXT_KEYS = ("event", "chat_id", "user_id", "command", "latency_ms", "error")
NOISY_LOGGERS = ("aiogram.event", "httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context passed through ``extra=`` becomes top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update({key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    # per-update and per-request INFO lines drown out command events
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
