from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Literal

import structlog

LOGGER = structlog.get_logger(__name__)

GovernanceEventKind = Literal[
    "proposal_registered",
    "vote_cast",
    "proposal_queued",
    "proposal_executed",
    "proposal_canceled",
]


@dataclass(frozen=True, slots=True)
class GovernanceEvent:
    proposal_id: str
    kind: GovernanceEventKind
    status: str | None = None
    actor: str | None = None
    timestamp: int | None = None


Subscriber = Callable[[GovernanceEvent], None]
UnsubscribeCallback = Callable[[], None]

_subscribers: list[Subscriber] = []
_lock = threading.Lock()


def subscribe(callback: Subscriber) -> UnsubscribeCallback:
    """Register a subscriber and return a callable that removes it."""
    with _lock:
        if callback not in _subscribers:
            _subscribers.append(callback)
        listener_count = len(_subscribers)
    LOGGER.debug("governance.events.subscribe", listeners=listener_count)

    def _unsubscribe() -> None:
        with _lock:
            if callback not in _subscribers:
                return
            _subscribers.remove(callback)
            remaining = len(_subscribers)
        LOGGER.debug("governance.events.unsubscribe", listeners=remaining)

    return _unsubscribe


def publish(event: GovernanceEvent) -> None:
    """Deliver an event to every subscriber synchronously, in subscription order."""
    with _lock:
        listeners = list(_subscribers)
    if not listeners:
        return

    LOGGER.debug(
        "governance.events.publish",
        proposal_id=event.proposal_id,
        kind=event.kind,
        status=event.status,
    )
    for callback in listeners:
        _invoke(callback, event)


def _invoke(callback: Subscriber, event: GovernanceEvent) -> None:
    try:
        callback(event)
    except Exception as exc:
        LOGGER.warning(
            "governance.events.callback_error",
            error=str(exc),
            proposal_id=event.proposal_id,
            kind=event.kind,
        )


__all__ = [
    "GovernanceEvent",
    "GovernanceEventKind",
    "publish",
    "subscribe",
]
