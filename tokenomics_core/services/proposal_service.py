"""Proposal outcome evaluation using Result pattern."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import structlog

from tokenomics_core.config.settings import GovernanceSettings, get_governance_settings
from tokenomics_core.infra.result import (
    Err,
    Ok,
    Result,
    TokenArithmeticError,
    ValidationError,
    returns_result,
)
from tokenomics_core.models.allocation_models import normalize_address
from tokenomics_core.models.governance_models import (
    Proposal,
    ProposalStatus,
    Vote,
    VoteSupport,
    VotingResults,
    VotingStrategy,
)
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.governance_errors import (
    CancelNotAllowedError,
    DuplicateVoteError,
    GovernanceError,
    GovernanceErrorCode,
    GovernanceValidationError,
    InvalidProposalStatusError,
    TimelockNotElapsedError,
    VotingNotAllowedError,
)
from tokenomics_core.services.voting_power_service import parse_strategy, power_of

LOGGER = structlog.get_logger(__name__)


def _share(part: TokenAmount, whole: TokenAmount) -> Decimal:
    if whole.is_zero():
        return Decimal(0)
    return part.percent_of(whole)


class ProposalOutcomeEvaluator:
    """提案狀態機：依時間、法定人數與多數門檻判定提案狀態。

    所有時間參數（now、執行延遲、執行窗口）皆由呼叫端提供或取自設定，
    不會自行讀取系統時鐘。每個操作回傳新的 Proposal，不修改輸入。
    """

    def __init__(self, *, settings: GovernanceSettings | None = None) -> None:
        self._settings = settings or get_governance_settings()

    @property
    def settings(self) -> GovernanceSettings:
        return self._settings

    # --- Submission ---
    @returns_result(
        GovernanceError,
        exception_map={
            ValueError: GovernanceValidationError,
            TypeError: ValidationError,
        },
    )
    def submit_proposal(
        self,
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
    ) -> Result[Proposal, GovernanceError]:
        """Create a Pending/Active proposal after validating its parameters."""
        quorum = quorum_percent if quorum_percent is not None else self._settings.quorum_percent
        majority = (
            required_majority_percent
            if required_majority_percent is not None
            else self._settings.required_majority_percent
        )
        strategy = parse_strategy(
            voting_strategy if voting_strategy is not None else self._settings.voting_strategy
        )

        if end_time <= start_time:
            return Err(
                GovernanceValidationError(
                    "投票結束時間必須晚於開始時間。",
                    error_code=GovernanceErrorCode.GOV_VALIDATION_INVALID_WINDOW,
                    context={"start_time": start_time, "end_time": end_time},
                )
            )
        for name, value in (("quorum_percent", quorum), ("required_majority_percent", majority)):
            if not 0 < value <= 100:
                return Err(
                    GovernanceValidationError(
                        "百分比參數必須介於 1 到 100 之間。",
                        error_code=GovernanceErrorCode.GOV_VALIDATION_INVALID_PERCENT,
                        context={name: value},
                    )
                )
        if total_supply.is_zero():
            raise TokenArithmeticError(
                "投票供給量快照為零，無法計算法定人數。",
                context={"proposal_id": proposal_id},
            )
        if proposer_power is not None:
            threshold = TokenAmount.from_tokens(
                self._settings.proposal_threshold_tokens, total_supply.decimals
            )
            if proposer_power < threshold:
                return Err(
                    GovernanceValidationError(
                        "提案人的投票權未達提案門檻。",
                        error_code=GovernanceErrorCode.GOV_VALIDATION_BELOW_THRESHOLD,
                        context={
                            "proposer": proposer,
                            "proposer_power": str(proposer_power),
                            "threshold": str(threshold),
                        },
                    )
                )

        proposal = Proposal(
            proposal_id=proposal_id,
            proposer=normalize_address(proposer),
            start_time=start_time,
            end_time=end_time,
            total_supply=total_supply,
            quorum_percent=quorum,
            required_majority_percent=majority,
            voting_strategy=strategy,
            title=title,
            description=description,
        )
        LOGGER.info(
            "governance.proposal.submitted",
            proposal_id=proposal_id,
            proposer=proposal.proposer,
            start_time=start_time,
            end_time=end_time,
            strategy=strategy.value,
        )
        return Ok(proposal)

    # --- Evaluation ---
    @returns_result(GovernanceError)
    def evaluate_proposal_state(
        self,
        proposal: Proposal,
        now: int,
        execution_window: int | None = None,
    ) -> Result[ProposalStatus, GovernanceError]:
        return Ok(self._status(proposal, now, self._window(execution_window)))

    @returns_result(GovernanceError)
    def tally(self, proposal: Proposal) -> Result[VotingResults, GovernanceError]:
        """Vote totals, shares of the cast votes and the quorum/majority verdict."""
        total = proposal.for_votes + proposal.against_votes + proposal.abstain_votes
        return Ok(
            VotingResults(
                for_votes=proposal.for_votes,
                against_votes=proposal.against_votes,
                abstain_votes=proposal.abstain_votes,
                total_votes=total,
                for_percentage=_share(proposal.for_votes, total),
                against_percentage=_share(proposal.against_votes, total),
                abstain_percentage=_share(proposal.abstain_votes, total),
                quorum_percent_reached=total.whole_percent_of(proposal.total_supply),
                quorum_reached=self._quorum_reached(proposal),
                majority_reached=self._majority_reached(proposal),
                voter_count=len(proposal.votes),
            )
        )

    def time_remaining(self, proposal: Proposal, now: int) -> int:
        """Seconds until voting closes; 0 once the voting period is over."""
        return max(0, proposal.end_time - now)

    # --- Voting ---
    @returns_result(
        GovernanceError,
        exception_map={
            ValueError: GovernanceValidationError,
            TypeError: ValidationError,
        },
    )
    def cast_vote(
        self,
        proposal: Proposal,
        voter: str,
        support: VoteSupport | int,
        balance: TokenAmount,
        strategy: VotingStrategy | str | None,
        now: int,
        *,
        reason: str | None = None,
    ) -> Result[Proposal, GovernanceError]:
        """Record one vote; the weight is computed once from ``balance`` and frozen."""
        status = self._status(proposal, now, self._window(None))
        if status is not ProposalStatus.ACTIVE:
            return Err(
                VotingNotAllowedError(
                    context={
                        "proposal_id": proposal.proposal_id,
                        "status": status.value,
                        "now": now,
                    }
                )
            )
        key = normalize_address(voter)
        if proposal.has_voted(key):
            return Err(
                DuplicateVoteError(
                    context={"proposal_id": proposal.proposal_id, "voter": key},
                )
            )

        choice = VoteSupport(support)
        parsed = parse_strategy(strategy if strategy is not None else proposal.voting_strategy)
        weight = power_of(balance, parsed)
        vote = Vote(
            proposal_id=proposal.proposal_id,
            voter=key,
            support=choice,
            weight=weight,
            timestamp=now,
            reason=reason,
        )
        field_name = {
            VoteSupport.FOR: "for_votes",
            VoteSupport.AGAINST: "against_votes",
            VoteSupport.ABSTAIN: "abstain_votes",
        }[choice]
        updated = replace(
            proposal,
            votes=proposal.votes + (vote,),
            **{field_name: proposal.tally_for(choice) + weight},
        )
        LOGGER.info(
            "governance.vote.cast",
            proposal_id=proposal.proposal_id,
            voter=key,
            support=choice.name.lower(),
            weight=weight,
            strategy=parsed.value,
        )
        return Ok(updated)

    # --- Lifecycle ---
    @returns_result(GovernanceError)
    def queue_proposal(
        self,
        proposal: Proposal,
        now: int,
        execution_delay: int | None = None,
    ) -> Result[Proposal, GovernanceError]:
        """Move a Succeeded proposal into the timelock queue."""
        if proposal.queued_eta is not None:
            return Err(
                InvalidProposalStatusError(
                    "提案已排入執行佇列。",
                    error_code=GovernanceErrorCode.GOV_STATE_ALREADY_QUEUED,
                    context={"proposal_id": proposal.proposal_id, "eta": proposal.queued_eta},
                )
            )
        status = self._status(proposal, now, self._window(None))
        if status is not ProposalStatus.SUCCEEDED:
            return Err(
                InvalidProposalStatusError(
                    "只有已通過的提案可以排入執行佇列。",
                    error_code=GovernanceErrorCode.GOV_STATE_NOT_SUCCEEDED,
                    context={"proposal_id": proposal.proposal_id, "status": status.value},
                )
            )
        delay = (
            execution_delay
            if execution_delay is not None
            else self._settings.execution_delay_seconds
        )
        eta = now + delay
        LOGGER.info("governance.proposal.queued", proposal_id=proposal.proposal_id, eta=eta)
        return Ok(replace(proposal, queued_eta=eta))

    @returns_result(GovernanceError)
    def execute_proposal(
        self,
        proposal: Proposal,
        now: int,
        execution_window: int | None = None,
    ) -> Result[Proposal, GovernanceError]:
        """Mark a queued proposal executed once its timelock has elapsed."""
        window = self._window(execution_window)
        status = self._status(proposal, now, window)
        if status is not ProposalStatus.QUEUED:
            code = (
                GovernanceErrorCode.GOV_STATE_TERMINAL
                if status.is_terminal
                else GovernanceErrorCode.GOV_STATE_NOT_QUEUED
            )
            return Err(
                InvalidProposalStatusError(
                    "只有排入佇列且未逾期的提案可以執行。",
                    error_code=code,
                    context={"proposal_id": proposal.proposal_id, "status": status.value},
                )
            )
        eta = proposal.queued_eta
        if eta is not None and now < eta:
            return Err(
                TimelockNotElapsedError(
                    context={"proposal_id": proposal.proposal_id, "eta": eta, "now": now},
                )
            )
        LOGGER.info("governance.proposal.executed", proposal_id=proposal.proposal_id, now=now)
        return Ok(replace(proposal, executed=True))

    @returns_result(GovernanceError)
    def cancel_proposal(
        self,
        proposal: Proposal,
        caller: str,
        now: int,
        execution_window: int | None = None,
    ) -> Result[Proposal, GovernanceError]:
        """Only the proposer may cancel, and only before a terminal state."""
        if normalize_address(caller) != normalize_address(proposal.proposer):
            return Err(
                CancelNotAllowedError(
                    "只有提案人可以撤銷提案。",
                    error_code=GovernanceErrorCode.GOV_STATE_NOT_PROPOSER,
                    context={"proposal_id": proposal.proposal_id, "caller": caller},
                )
            )
        status = self._status(proposal, now, self._window(execution_window))
        if status.is_terminal:
            return Err(
                CancelNotAllowedError(
                    "提案已結束，無法撤銷。",
                    error_code=GovernanceErrorCode.GOV_STATE_TERMINAL,
                    context={"proposal_id": proposal.proposal_id, "status": status.value},
                )
            )
        LOGGER.info(
            "governance.proposal.canceled",
            proposal_id=proposal.proposal_id,
            previous_status=status.value,
        )
        return Ok(replace(proposal, canceled=True))

    # --- internals ---
    def _window(self, execution_window: int | None) -> int:
        if execution_window is not None:
            return execution_window
        return self._settings.execution_window_seconds

    def _status(self, proposal: Proposal, now: int, execution_window: int) -> ProposalStatus:
        if proposal.canceled:
            return ProposalStatus.CANCELED
        if proposal.executed:
            return ProposalStatus.EXECUTED
        if now < proposal.start_time:
            return ProposalStatus.PENDING
        if now <= proposal.end_time:
            return ProposalStatus.ACTIVE
        if not (self._quorum_reached(proposal) and self._majority_reached(proposal)):
            return ProposalStatus.DEFEATED
        if proposal.queued_eta is None:
            return ProposalStatus.SUCCEEDED
        if now > proposal.queued_eta + execution_window:
            return ProposalStatus.EXPIRED
        return ProposalStatus.QUEUED

    @staticmethod
    def _quorum_reached(proposal: Proposal) -> bool:
        total = proposal.for_votes + proposal.against_votes + proposal.abstain_votes
        return total.whole_percent_of(proposal.total_supply) >= proposal.quorum_percent

    @staticmethod
    def _majority_reached(proposal: Proposal) -> bool:
        decisive = proposal.for_votes + proposal.against_votes
        # 無決定性票數時不視為通過
        if decisive.is_zero():
            return False
        return proposal.for_votes.whole_percent_of(decisive) >= proposal.required_majority_percent


__all__ = ["ProposalOutcomeEvaluator"]
