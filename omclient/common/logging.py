import json
import logging
import re
from logging.config import dictConfig
from typing import Any

REDACTED = "***"

SENSITIVE_KEYS = {"signature", "secret", "secret_key", "om_secret_key", "authorization"}

# fields attached by the client through ``extra={"extra": {...}}``
CLIENT_FIELDS = ("operation", "object_id", "error_kind", "status_code")

_SIGNATURE_PARAM = re.compile(r"(?i)\b(signature|secret_key)=[^&\s]+")


def redact_text(text: str) -> str:
    """Mask signature values in query strings and form bodies."""
    return _SIGNATURE_PARAM.sub(lambda m: f"{m.group(1)}={REDACTED}", text)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS
            else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    if isinstance(value, str):
        return redact_text(value)
    return value


def setup_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Route ``omclient.*`` records to stderr.

    Other loggers are left to the hosting application.
    """
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "client": {
                    "()": JsonFormatter if json_output else PlainFormatter,
                },
            },
            "handlers": {
                "client_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "client",
                },
            },
            "loggers": {
                "omclient": {
                    "handlers": ["client_console"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


def _client_extra(record: logging.LogRecord) -> dict[str, Any]:
    extra = getattr(record, "extra", None)
    return redact(extra) if isinstance(extra, dict) else {}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": redact_text(record.getMessage()),
        }
        extra = _client_extra(record)
        for name in CLIENT_FIELDS:
            value = extra.pop(name, None)
            if value is not None:
                payload[name] = value
        payload.update(extra)
        return json.dumps(payload, ensure_ascii=False)


class PlainFormatter(logging.Formatter):
    """``LEVEL logger: message [operation=... status_code=...]``"""

    def format(self, record: logging.LogRecord) -> str:
        extra = _client_extra(record)
        context = " ".join(
            f"{name}={extra[name]}" for name in CLIENT_FIELDS if extra.get(name) is not None
        )
        line = f"{record.levelname} {record.name}: {redact_text(record.getMessage())}"
        return f"{line} [{context}]" if context else line
