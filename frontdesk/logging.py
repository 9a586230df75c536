"""Centralized structured logging configuration using structlog."""

import json
import logging
import re
import sys
from typing import Any, Protocol

import structlog


# Patterns that look like secrets or contact identifiers in log output
_SECRET_PATTERNS = [
    re.compile(r"sk-[A-Za-z0-9_-]{10,}"),           # OpenAI / Anthropic style
    re.compile(r"Bearer\s+[A-Za-z0-9_\-.]{10,}"),    # Authorization headers
    re.compile(r"ghp_[A-Za-z0-9]{10,}"),             # GitHub PAT
    re.compile(r"gho_[A-Za-z0-9]{10,}"),             # GitHub OAuth
    re.compile(r"EAA[A-Za-z0-9]{20,}"),              # WhatsApp Cloud API tokens
    re.compile(r"(?<!\w)\+?\d{10,15}(?!\w)"),       # contact phone numbers (E.164)
]


def mask_secret(value: str) -> str:
    """Mask a secret value, keeping first 4 and last 4 chars visible.

    >>> mask_secret("sk-abc123456789xyz")
    'sk-a****9xyz'
    """
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


def _redact_value(value: str) -> str:
    """Replace any secret-looking substrings in *value*."""
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(lambda m: mask_secret(m.group(0)), value)
    return value


def _redact_event(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Structlog processor that redacts secrets from all string values."""
    for key, val in event_dict.items():
        if isinstance(val, str):
            event_dict[key] = _redact_value(val)
    return event_dict


def setup_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog with stdlib logging backend.

    Args:
        json_output: If True, output JSON lines; otherwise human-readable console output.
        level: Root log level for the ``frontdesk`` logger hierarchy.
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _redact_event,
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer(serializer=lambda obj, **kw: json.dumps(obj, ensure_ascii=False, **kw))
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger("frontdesk")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))


def get_logger(name: str = "frontdesk") -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger for the given name."""
    return structlog.get_logger(name)


class ObservabilitySink(Protocol):
    """One-way sink for per-turn observability records."""

    def info(self, message: str, tag: str, **fields: Any) -> None: ...
    def error(self, message: str, tag: str, **fields: Any) -> None: ...


class StructlogSink:
    """Fire-and-forget sink that forwards records to a structlog logger.

    Failures inside the logging pipeline are reported on stderr and dropped;
    they never propagate back into the caller.
    """

    def __init__(self, name: str = "frontdesk.observability") -> None:
        self._logger = get_logger(name)

    def info(self, message: str, tag: str, **fields: Any) -> None:
        self._emit("info", message, tag, fields)

    def error(self, message: str, tag: str, **fields: Any) -> None:
        self._emit("error", message, tag, fields)

    def _emit(self, level: str, message: str, tag: str, fields: dict[str, Any]) -> None:
        try:
            getattr(self._logger, level)(message, tag=tag, **fields)
        except Exception as e:
            print(f"frontdesk: observability sink dropped a record: {e!r}", file=sys.stderr)
