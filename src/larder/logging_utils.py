"""Logging setup for Larder: plain or JSON output, grocery context, token redaction."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Sequence

REDACTED = "[redacted]"

# Extra attributes a log call may pass; both formatters surface them.
CONTEXT_FIELDS = ("request_id", "period_id", "entry_id", "operation")

# Every way a client can present the API token to the server.
TOKEN_PATTERNS = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)", re.IGNORECASE),
    re.compile(r"(api_token=)([^&\s]+)", re.IGNORECASE),
    re.compile(r"(X-API-Key[=:]\s*)([^&\s,]+)", re.IGNORECASE),
)

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def redact(value: str, secrets: Sequence[str] = ()) -> str:
    """Mask token-shaped substrings and any literal secret in ``value``."""

    for pattern in TOKEN_PATTERNS:
        value = pattern.sub(r"\1" + REDACTED, value)
    for secret in secrets:
        if secret:
            value = value.replace(secret, REDACTED)
    return value


def context_of(record: logging.LogRecord) -> dict[str, object]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class SensitiveDataFilter(logging.Filter):
    """Redact the configured API token from messages and string attributes."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self.secrets = tuple(secret.strip() for secret in secrets if secret and secret.strip())

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        if not self.secrets:
            return True

        message = record.getMessage()
        cleaned = redact(message, self.secrets)
        if cleaned != message:
            record.msg = cleaned
            record.args = ()

        for key, value in list(vars(record).items()):
            if isinstance(value, str):
                setattr(record, key, redact(value, self.secrets))
        return True


class ContextFormatter(logging.Formatter):
    """Plain formatter appending ``[period_id=3 operation=generate]`` when present."""

    def __init__(self) -> None:
        super().__init__(PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = context_of(record)
        if not context:
            return line
        suffix = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{suffix}]"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, context fields as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context_of(record),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Route all logging (uvicorn included) through one redacting root handler."""

    level = getattr(logging, level_name.upper(), logging.INFO)
    use_json = (fmt or "plain").lower() == "json"

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if use_json else ContextFormatter())
    redactor = SensitiveDataFilter(secrets)
    handler.addFilter(redactor)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.setLevel(level)
        server_logger.propagate = True
        server_logger.addFilter(redactor)


__all__ = [
    "CONTEXT_FIELDS",
    "ContextFormatter",
    "JsonFormatter",
    "SensitiveDataFilter",
    "configure_logging",
    "redact",
]
