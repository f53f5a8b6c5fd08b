"""
Structlog setup for github-utils.

Library modules only call get_logger(); the host application calls
setup_logging() once. Every event passes through the redaction processor
so GitHub tokens and webhook secrets never reach the output, whichever
key they were logged under.

Webhook requests carry request_id and delivery_id through structlog
contextvars (see bind_delivery_context), so logs from the tarball client
made while handling a delivery can be correlated with it.
"""

import logging
import re
import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "github-utils"

# Token shapes GitHub issues, bearer headers and webhook signatures
_SENSITIVE_PATTERNS = [
    re.compile(r"ghp_[a-zA-Z0-9]{36,}"),
    re.compile(r"gh[osu]_[a-zA-Z0-9]{36,}"),
    re.compile(r"github_pat_[a-zA-Z0-9_]{22,}"),
    re.compile(r"Bearer\s+[a-zA-Z0-9\-_.]+"),
    re.compile(r"sha256=[0-9a-fA-F]{64}"),
]

_SENSITIVE_KEYS = frozenset({
    "token", "secret", "password", "api_key", "apikey",
    "authorization", "auth", "credentials", "private_key",
    "webhook_secret", "github_token", "github_webhook_secret",
})

_SENSITIVE_SUFFIXES = ("_token", "_secret", "_api_key", "_password")

_REDACTED = "***REDACTED***"

_JSON_ENVIRONMENTS = ("production", "staging")


def _is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return key in _SENSITIVE_KEYS or key.endswith(_SENSITIVE_SUFFIXES)


def _looks_like_token(value: Any) -> bool:
    return isinstance(value, str) and any(p.search(value) for p in _SENSITIVE_PATTERNS)


def _redact_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace values stored under secret-looking keys or shaped like tokens."""
    return {
        key: _REDACTED if _is_sensitive_key(key) or _looks_like_token(value) else value
        for key, value in event_dict.items()
    }


def _add_service(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _select_renderer(environment: str, json_output: Optional[bool]) -> Processor:
    if json_output is None:
        json_output = environment in _JSON_ENVIRONMENTS
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(
    log_level: str = "INFO",
    environment: str = "development",
    json_output: Optional[bool] = None,
) -> None:
    """
    Route structlog and standard library logging through one stdout handler.

    Args:
        log_level: Root logging level name.
        environment: JSON output is used for production and staging.
        json_output: Overrides the environment-based renderer choice.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        _add_service,
        _redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _select_renderer(environment, json_output),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # httpx logs every request line at INFO, including the tarball URL
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def get_logger(name: Optional[str] = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally with context already bound."""
    log = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:12]}"


def bind_delivery_context(
    request_id: Optional[str] = None,
    delivery_id: Optional[str] = None,
    github_event: Optional[str] = None,
) -> str:
    """
    Start a fresh log context for one webhook delivery.

    Anything bound by a previous request in this context is dropped. Missing
    delivery headers are left out rather than logged as None.

    Returns:
        The request id in effect, generated when none was given.
    """
    request_id = request_id or generate_request_id()
    structlog.contextvars.clear_contextvars()
    context = {"request_id": request_id, "delivery_id": delivery_id, "github_event": github_event}
    structlog.contextvars.bind_contextvars(**{k: v for k, v in context.items() if v})
    return request_id


def clear_contextvars() -> None:
    structlog.contextvars.clear_contextvars()
