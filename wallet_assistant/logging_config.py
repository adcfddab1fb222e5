"""
structlog setup for the wallet assistant.

JSON lines by default, coloured console output at DEBUG. stdlib loggers and
structlog loggers share one pipeline, and the RPC key is masked before any
event is rendered (Alchemy carries it in the URL path).
"""

import logging
import sys
from typing import Any, Iterable, MutableMapping, Optional

import structlog

from .config import settings

REDACTED = "***"
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def _secrets() -> list[str]:
    return [s for s in (settings.alchemy_api_key, settings.coingecko_api_key) if s]


def _mask(value: Any, secrets: Iterable[str]) -> Any:
    if not isinstance(value, str):
        return value
    for secret in secrets:
        value = value.replace(secret, REDACTED)
    return value


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace configured API keys in every string value of the event."""
    secrets = _secrets()
    if not secrets:
        return event_dict
    for key, value in event_dict.items():
        event_dict[key] = _mask(value, secrets)
    return event_dict


def setup_logging(log_level: Optional[str] = None) -> None:
    """Install the structlog pipeline on the root logger.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    console = level == logging.DEBUG

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if not console:
        pre_chain.append(structlog.processors.format_exc_info)
    pre_chain.append(redact_secrets)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.dev.ConsoleRenderer() if console else structlog.processors.JSONRenderer()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
