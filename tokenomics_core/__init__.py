"""Tokenomics decision core: vesting, distribution, token sale figures and governance outcomes.

模組層級函數委派給預設的服務實例（依目前設定延遲建立），
每個操作皆回傳 ``Result``（``Ok`` / ``Err``）。
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Iterable, Mapping, Sequence

from tokenomics_core.infra.result import Error, Result
from tokenomics_core.models.allocation_models import (
    AllocationCategory,
    AllocationSchedule,
    ReleaseProjection,
    TokenDistributionStats,
    UpcomingRelease,
    VestingSchedule,
)
from tokenomics_core.models.governance_models import (
    Proposal,
    ProposalStatus,
    VoteSupport,
    VotingResults,
    VotingStrategy,
)
from tokenomics_core.models.sale_models import FundraisingTargets, IcoStage, TokenPricing
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.distribution_service import DistributionAggregator
from tokenomics_core.services.proposal_service import ProposalOutcomeEvaluator
from tokenomics_core.services.sale_service import (
    DEFAULT_STAGE_MULTIPLIERS,
    DEFAULT_STAGE_PERCENTAGES,
    TokenSaleCalculator,
)
from tokenomics_core.services.vesting_service import VestingScheduleEngine
from tokenomics_core.services.voting_power_service import VotingPowerCalculator


@lru_cache(maxsize=1)
def _vesting() -> VestingScheduleEngine:
    return VestingScheduleEngine()


@lru_cache(maxsize=1)
def _distribution() -> DistributionAggregator:
    return DistributionAggregator(vesting_engine=_vesting())


@lru_cache(maxsize=1)
def _voting_power() -> VotingPowerCalculator:
    return VotingPowerCalculator()


@lru_cache(maxsize=1)
def _evaluator() -> ProposalOutcomeEvaluator:
    return ProposalOutcomeEvaluator()


@lru_cache(maxsize=1)
def _sale() -> TokenSaleCalculator:
    return TokenSaleCalculator()


def reset_default_services() -> None:
    """Drop cached service instances so the next call picks up fresh settings."""
    for factory in (_vesting, _distribution, _voting_power, _evaluator, _sale):
        factory.cache_clear()


# --- Vesting ---


def compute_monthly_schedule(
    allocation: AllocationCategory, months_ahead: int | None = None
) -> Result[AllocationSchedule, Error]:
    return _vesting().compute_monthly_schedule(allocation, months_ahead)


def vested_amount(schedule: VestingSchedule, now: int) -> Result[TokenAmount, Error]:
    return _vesting().vested_amount(schedule, now)


def releasable_amount(schedule: VestingSchedule, now: int) -> Result[TokenAmount, Error]:
    return _vesting().releasable_amount(schedule, now)


def release(schedule: VestingSchedule, now: int) -> Result[VestingSchedule, Error]:
    return _vesting().release(schedule, now)


def revoke(schedule: VestingSchedule, now: int) -> Result[VestingSchedule, Error]:
    return _vesting().revoke(schedule, now)


# --- Distribution ---


def compute_distribution_stats(
    allocations: Sequence[AllocationCategory], total_supply: TokenAmount, now: int
) -> Result[TokenDistributionStats, Error]:
    return _distribution().compute_distribution_stats(allocations, total_supply, now)


def compute_upcoming_releases(
    schedules: Sequence[VestingSchedule],
    now: int,
    lookahead_months: int | None = None,
    total_supply: TokenAmount | None = None,
) -> Result[list[UpcomingRelease], Error]:
    return _distribution().compute_upcoming_releases(
        schedules, now, lookahead_months, total_supply
    )


def compute_release_projection(
    allocations: Sequence[AllocationCategory],
    total_supply: TokenAmount,
    months: int | None = None,
) -> Result[ReleaseProjection, Error]:
    return _distribution().compute_release_projection(allocations, total_supply, months)


def personal_distribution(
    schedules: Iterable[VestingSchedule], recipient: str
) -> Result[dict[str, TokenAmount], Error]:
    return _distribution().personal_distribution(schedules, recipient)


def default_allocation_plan(
    total_supply: TokenAmount, start_timestamp: int = 0
) -> Result[list[AllocationCategory], Error]:
    return _distribution().default_allocation_plan(total_supply, start_timestamp)


# --- Governance ---


def compute_voting_power(
    balance: TokenAmount, strategy: VotingStrategy | str
) -> Result[TokenAmount, Error]:
    return _voting_power().compute_voting_power(balance, strategy)


def resolve_voting_power(
    address: str,
    balances: Mapping[str, TokenAmount],
    delegations: Mapping[str, str] | None = None,
    strategy: VotingStrategy | str = VotingStrategy.SIMPLE,
) -> Result[TokenAmount, Error]:
    return _voting_power().resolve_voting_power(address, balances, delegations, strategy)


def evaluate_proposal_state(proposal: Proposal, now: int) -> Result[ProposalStatus, Error]:
    return _evaluator().evaluate_proposal_state(proposal, now)


def tally(proposal: Proposal) -> Result[VotingResults, Error]:
    return _evaluator().tally(proposal)


def cast_vote(
    proposal: Proposal,
    voter: str,
    support: VoteSupport | int,
    balance: TokenAmount,
    strategy: VotingStrategy | str | None,
    now: int,
) -> Result[Proposal, Error]:
    return _evaluator().cast_vote(proposal, voter, support, balance, strategy, now)


def queue_proposal(
    proposal: Proposal, now: int, execution_delay: int | None = None
) -> Result[Proposal, Error]:
    return _evaluator().queue_proposal(proposal, now, execution_delay)


def execute_proposal(
    proposal: Proposal, now: int, execution_window: int | None = None
) -> Result[Proposal, Error]:
    return _evaluator().execute_proposal(proposal, now, execution_window)


def cancel_proposal(proposal: Proposal, caller: str, now: int) -> Result[Proposal, Error]:
    return _evaluator().cancel_proposal(proposal, caller, now)


def submit_proposal(
    *,
    proposal_id: str,
    proposer: str,
    start_time: int,
    end_time: int,
    total_supply: TokenAmount,
    quorum_percent: int | None = None,
    required_majority_percent: int | None = None,
    voting_strategy: VotingStrategy | str | None = None,
    proposer_power: TokenAmount | None = None,
    title: str = "",
    description: str = "",
) -> Result[Proposal, Error]:
    return _evaluator().submit_proposal(
        proposal_id=proposal_id,
        proposer=proposer,
        start_time=start_time,
        end_time=end_time,
        total_supply=total_supply,
        quorum_percent=quorum_percent,
        required_majority_percent=required_majority_percent,
        voting_strategy=voting_strategy,
        proposer_power=proposer_power,
        title=title,
        description=description,
    )


# --- Token sale ---


def compute_ico_stages(
    total_supply: TokenAmount | int,
    initial_price_usd: int | str | Decimal,
    stage_multipliers: Sequence[int | str | Decimal] | None = None,
    stage_percentages: Sequence[int | str | Decimal] | None = None,
) -> Result[list[IcoStage], Error]:
    return _sale().compute_ico_stages(
        total_supply,
        initial_price_usd,
        stage_multipliers if stage_multipliers is not None else DEFAULT_STAGE_MULTIPLIERS,
        stage_percentages if stage_percentages is not None else DEFAULT_STAGE_PERCENTAGES,
    )


def compute_token_pricing(
    total_supply: TokenAmount | int,
    initial_price_usd: int | str | Decimal,
    circulating_percentage: int | str | Decimal = 25,
    target_price_multiplier: int | str | Decimal = 5,
) -> Result[TokenPricing, Error]:
    return _sale().compute_token_pricing(
        total_supply, initial_price_usd, circulating_percentage, target_price_multiplier
    )


def compute_fundraising(
    hard_cap_usd: int | str | Decimal,
    soft_cap_percentage: int | str | Decimal = 60,
    eth_price_usd: int | str | Decimal = 2000,
) -> Result[FundraisingTargets, Error]:
    return _sale().compute_fundraising(hard_cap_usd, soft_cap_percentage, eth_price_usd)


__all__ = [
    "TokenAmount",
    "cancel_proposal",
    "cast_vote",
    "compute_distribution_stats",
    "compute_fundraising",
    "compute_ico_stages",
    "compute_monthly_schedule",
    "compute_release_projection",
    "compute_token_pricing",
    "compute_upcoming_releases",
    "compute_voting_power",
    "default_allocation_plan",
    "evaluate_proposal_state",
    "execute_proposal",
    "personal_distribution",
    "queue_proposal",
    "releasable_amount",
    "release",
    "reset_default_services",
    "resolve_voting_power",
    "revoke",
    "submit_proposal",
    "tally",
]
