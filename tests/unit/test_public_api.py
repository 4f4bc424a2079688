"""模組層級 API 委派給預設服務實例的整合檢查。"""

from __future__ import annotations

import pytest

import tokenomics_core
from tokenomics_core import TokenAmount
from tokenomics_core.config.settings import get_governance_settings
from tokenomics_core.infra.result import Err, Ok
from tokenomics_core.models.allocation_models import SECONDS_PER_MONTH, VestingSchedule
from tokenomics_core.models.governance_models import ProposalStatus, VoteSupport


@pytest.mark.unit
def test_distribution_round_trip() -> None:
    supply = TokenAmount.from_tokens(1_000_000)
    plan = tokenomics_core.default_allocation_plan(supply, 0).unwrap()

    stats = tokenomics_core.compute_distribution_stats(plan, supply, 0).unwrap()
    projection = tokenomics_core.compute_release_projection(plan, supply, 12).unwrap()
    schedule = tokenomics_core.compute_monthly_schedule(plan[0]).unwrap()

    assert stats.initial_circulating == projection.cumulative[0]
    assert len(projection.amounts) == 13
    assert schedule.allocation_name == "Public Sale"


@pytest.mark.unit
def test_vesting_operations() -> None:
    grant = VestingSchedule(
        recipient="0xA",
        category="Team",
        amount=TokenAmount(1_200, 0),
        start_timestamp=0,
        cliff_seconds=0,
        duration_seconds=12 * SECONDS_PER_MONTH,
    )
    now = 6 * SECONDS_PER_MONTH

    assert tokenomics_core.vested_amount(grant, now).unwrap().raw == 600
    assert tokenomics_core.releasable_amount(grant, now).unwrap().raw == 600
    released = tokenomics_core.release(grant, now).unwrap()
    assert isinstance(tokenomics_core.release(released, now), Err)
    assert tokenomics_core.revoke(released, now).unwrap().revoked is True
    assert tokenomics_core.personal_distribution([grant], "0xa").unwrap() == {
        "Team": TokenAmount(1_200, 0)
    }
    assert tokenomics_core.compute_upcoming_releases([grant], now, 1).unwrap()[0].amount.raw == 100


@pytest.mark.unit
def test_governance_round_trip() -> None:
    proposal = tokenomics_core.submit_proposal(
        proposal_id="api-1",
        proposer="0xP",
        start_time=0,
        end_time=100,
        total_supply=TokenAmount(1_000, 0),
    ).unwrap()

    power = tokenomics_core.resolve_voting_power(
        "0xV", {"0xV": TokenAmount(500, 0)}
    ).unwrap()
    voted = tokenomics_core.cast_vote(proposal, "0xV", VoteSupport.FOR, power, None, 50).unwrap()

    assert tokenomics_core.tally(voted).unwrap().quorum_reached is True
    assert tokenomics_core.evaluate_proposal_state(voted, 101) == Ok(ProposalStatus.SUCCEEDED)
    queued = tokenomics_core.queue_proposal(voted, 101, 0).unwrap()
    assert tokenomics_core.execute_proposal(queued, 101).unwrap().executed is True
    assert tokenomics_core.cancel_proposal(proposal, "0xP", 50).unwrap().canceled is True
    assert tokenomics_core.compute_voting_power(TokenAmount(9, 0), "quadratic") == Ok(
        TokenAmount(3, 0)
    )


@pytest.mark.unit
def test_default_services_follow_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENOMICS_GOVERNANCE_QUORUM_PERCENT", "60")
    get_governance_settings.cache_clear()
    tokenomics_core.reset_default_services()

    proposal = tokenomics_core.submit_proposal(
        proposal_id="api-2",
        proposer="0xP",
        start_time=0,
        end_time=100,
        total_supply=TokenAmount(1_000, 0),
    ).unwrap()

    assert proposal.quorum_percent == 60
