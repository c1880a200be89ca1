import logging
import json
import os
from typing import Any, Dict
from flask import g, has_app_context
from opentelemetry.trace import get_current_span


SENSITIVE_KEYS = frozenset({"password", "token", "access_token", "authorization", "email", "phone"})
REDACTED = "[REDACTED]"


def current_request_id() -> str:
    if not has_app_context():
        return "n/a"
    return getattr(g, "request_id", None) or "n/a"


def current_trace_ids():
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return "n/a", "n/a"
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class ContextFilter(logging.Filter):
    """Stamp request id and trace/span ids onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        record.trace_id, record.span_id = current_trace_ids()
        return True


def _mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: (REDACTED if key in SENSITIVE_KEYS else value) for key, value in data.items()}


class MaskingFilter(logging.Filter):
    """Redact sensitive keys of dict messages; plain DEBUG stays readable outside production."""

    def _should_mask(self, record: logging.LogRecord) -> bool:
        env = os.getenv("APP_ENV", "development").lower()
        return record.levelno != logging.DEBUG or env == "production"

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._should_mask(record):
            return True
        if isinstance(record.msg, dict):
            record.msg = _mask_dict(record.msg)
        if isinstance(record.args, dict):
            record.args = _mask_dict(record.args)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; dict messages are merged into the payload."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "request_id": getattr(record, "request_id", "n/a"),
            "trace_id": getattr(record, "trace_id", "n/a"),
            "span_id": getattr(record, "span_id", "n/a"),
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(app) -> int:
    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        return getattr(logging, level_name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z"))
    handler.addFilter(ContextFilter())
    handler.addFilter(MaskingFilter())
    level = _resolve_level(app)

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    wl = logging.getLogger("werkzeug")
    wl.setLevel(level)
    wl.handlers.clear()
    wl.addHandler(handler)
