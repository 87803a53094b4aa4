"""Structured logging for auth-audience.

Library code logs through ``get_logger``, which wraps a standard library
logger named after the module. Nothing is configured on import: events
travel through the host application's logging setup like any other
``auth_audience.*`` record, with the structured fields attached as record
attributes. Credential-bearing fields (keys, tokens, authorization headers,
payloads) are redacted before a record is created.

``configure_logging`` is opt-in. It installs one handler on the
``auth_audience`` logger only, rendering JSON or colored console output to
stderr. The CLI calls it; applications may call it or leave routing to
their own handlers.

Environment Variables:
    AUTH_AUDIENCE_LOG_FORMAT: "json" or "console" (default)
    AUTH_AUDIENCE_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR (default INFO)
    AUTH_AUDIENCE_SERVICE_NAME: Value of the ``service`` field on rendered events

Example:
    >>> from auth_audience.observability.logging import configure_logging, get_logger
    >>>
    >>> configure_logging(log_format="json")
    >>> logger = get_logger("auth_audience.auth.chain")
    >>> logger.info("auth_audience.chain.succeeded", strategy="jwt", key="s3cret")
    {"strategy": "jwt", "key": "***REDACTED***", "event": "auth_audience.chain.succeeded", ...}
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

ROOT_LOGGER_NAME = "auth_audience"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "auth-audience"

ENV_LOG_FORMAT = "AUTH_AUDIENCE_LOG_FORMAT"
ENV_LOG_LEVEL = "AUTH_AUDIENCE_LOG_LEVEL"
ENV_SERVICE_NAME = "AUTH_AUDIENCE_SERVICE_NAME"

REDACTED_PLACEHOLDER = "***REDACTED***"

# Field names (case-insensitive substrings) whose values may carry credentials
_CREDENTIAL_FIELDS = frozenset({"key", "token", "secret", "authorization", "jwt", "payload"})

_installed_handler: logging.Handler | None = None


def _is_credential_field(name: str) -> bool:
    lower = name.lower()
    return any(part in lower for part in _CREDENTIAL_FIELDS)


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_for_logging(value)
    if isinstance(value, (list, tuple)):
        return type(value)(_sanitize_value(item) for item in value)
    return value


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with credential-bearing values redacted.

    Nested dicts, lists and tuples are walked; only the values of matching
    field names are replaced.

    Example:
        >>> sanitize_for_logging({"audience": "api", "domains": {"field": {"key": "k"}}})
        {'audience': 'api', 'domains': {'field': {'key': '***REDACTED***'}}}
    """
    return {
        k: REDACTED_PLACEHOLDER if _is_credential_field(k) else _sanitize_value(v)
        for k, v in data.items()
    }


def redact_credentials(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """structlog processor applying ``sanitize_for_logging`` to every event."""
    event = event_dict.pop("event", None)
    sanitized = sanitize_for_logging(event_dict)
    if event is not None:
        sanitized["event"] = event
    return sanitized


def _library_processors() -> list[Processor]:
    """Processors run before a record reaches the standard library logger."""
    return [
        structlog.contextvars.merge_contextvars,
        redact_credentials,
        structlog.stdlib.render_to_log_kwargs,
    ]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to the standard library logger ``name``.

    Does not touch global logging or structlog configuration.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_library_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def _add_service(service_name: str) -> Processor:
    def processor(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> logging.Handler:
    """Render ``auth_audience.*`` records to stderr.

    Installs a single handler on the ``auth_audience`` logger and stops
    propagation to the root logger; handlers owned by the application are
    left alone. Calling it again is a no-op unless ``force`` is set, in
    which case the previously installed handler is replaced.

    Args:
        log_format: "json" or "console". Defaults to env var or "console".
        log_level: Minimum level. Defaults to env var or "INFO".
        service_name: ``service`` field value. Defaults to env var or "auth-audience".
        force: Replace an existing auth-audience handler.

    Returns:
        The installed handler.
    """
    global _installed_handler

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _installed_handler is not None and not force:
        return _installed_handler

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)).lower()
    log_level = (log_level or os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
    service_name = service_name or os.environ.get(ENV_SERVICE_NAME, DEFAULT_SERVICE_NAME)

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.ExtraAdder(),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _add_service(service_name),
            structlog.processors.TimeStamper(fmt="iso"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    if _installed_handler is not None:
        package_logger.removeHandler(_installed_handler)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, log_level))
    package_logger.propagate = False

    _installed_handler = handler
    return handler


def bind_context(**kwargs: Any) -> None:
    """Bind fields included in every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove the given fields from the current context."""
    structlog.contextvars.unbind_contextvars(*keys)
