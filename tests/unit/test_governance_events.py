from __future__ import annotations

from collections.abc import Iterator

import pytest

from tokenomics_core.infra.events import governance_events
from tokenomics_core.infra.events.governance_events import GovernanceEvent


@pytest.fixture(autouse=True)
def _isolated_subscribers() -> Iterator[None]:
    saved = list(governance_events._subscribers)
    governance_events._subscribers.clear()
    yield
    governance_events._subscribers[:] = saved


def _event(kind: str = "vote_cast") -> GovernanceEvent:
    return GovernanceEvent(proposal_id="p-1", kind=kind, status="active")  # type: ignore[arg-type]


@pytest.mark.unit
def test_publish_without_subscribers_is_noop() -> None:
    governance_events.publish(_event())


@pytest.mark.unit
def test_subscribers_receive_events_in_order() -> None:
    calls: list[str] = []
    governance_events.subscribe(lambda e: calls.append(f"first:{e.kind}"))
    governance_events.subscribe(lambda e: calls.append(f"second:{e.kind}"))

    governance_events.publish(_event())

    assert calls == ["first:vote_cast", "second:vote_cast"]


@pytest.mark.unit
def test_subscribing_twice_delivers_once() -> None:
    received: list[GovernanceEvent] = []
    governance_events.subscribe(received.append)
    governance_events.subscribe(received.append)

    governance_events.publish(_event())

    assert len(received) == 1


@pytest.mark.unit
def test_unsubscribe_stops_delivery_and_is_idempotent() -> None:
    received: list[GovernanceEvent] = []
    unsubscribe = governance_events.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    governance_events.publish(_event())

    assert received == []


@pytest.mark.unit
def test_failing_subscriber_does_not_block_others() -> None:
    received: list[GovernanceEvent] = []

    def _boom(event: GovernanceEvent) -> None:
        raise RuntimeError("subscriber failed")

    governance_events.subscribe(_boom)
    governance_events.subscribe(received.append)

    governance_events.publish(_event("proposal_queued"))

    assert [e.kind for e in received] == ["proposal_queued"]
