"""JSON Lines logging for the computation core.

One JSON object per line on stdout with ``ts``, ``level``, ``msg`` and
``event`` keys. Wallet secrets are redacted and ``TokenAmount`` values are
rendered as exact decimal strings, so 18-decimal figures survive JSON
consumers that parse numbers as floats.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

import structlog

from tokenomics_core.config.settings import get_settings
from tokenomics_core.infra.redaction import redact
from tokenomics_core.models.token_amount import TokenAmount

EventDict = MutableMapping[str, Any]

_configured = False


def _mirror_event_as_msg(_: Any, __: str, event_dict: EventDict) -> EventDict:
    event = event_dict.get("event")
    if isinstance(event, str):
        event_dict.setdefault("msg", event)
    return event_dict


def _redact_secrets(_: Any, __: str, event_dict: EventDict) -> EventDict:
    return {key: redact(value, key) for key, value in event_dict.items()}


def _render_amount(value: Any) -> Any:
    if isinstance(value, TokenAmount):
        return str(value)
    if isinstance(value, dict):
        return {k: _render_amount(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_render_amount(v) for v in value]
    return value


def _render_amounts(_: Any, __: str, event_dict: EventDict) -> EventDict:
    return {key: _render_amount(value) for key, value in event_dict.items()}


def configure_logging(level: str | None = None) -> None:
    """Route structlog through stdlib logging as JSON Lines on stdout.

    ``level`` defaults to ``TOKENOMICS_LOG_LEVEL``; unknown names fall back to INFO.
    Safe to call repeatedly (the root handler is replaced each time).
    """
    global _configured

    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(message)s",
        stream=sys.stdout,
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            _mirror_event_as_msg,
            _redact_secrets,
            _render_amounts,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configured = True


def is_configured() -> bool:
    return _configured


__all__ = ["configure_logging", "is_configured"]
