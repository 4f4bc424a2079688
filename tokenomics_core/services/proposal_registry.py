"""In-memory proposal registry serializing mutations per proposal."""

from __future__ import annotations

import threading
from typing import Callable

import structlog

from tokenomics_core.infra.events.governance_events import (
    GovernanceEvent,
    GovernanceEventKind,
)
from tokenomics_core.infra.events.governance_events import publish as publish_governance_event
from tokenomics_core.infra.result import Err, Ok, Result
from tokenomics_core.models.governance_models import (
    Proposal,
    ProposalStatus,
    VoteSupport,
    VotingStrategy,
)
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.governance_errors import (
    GovernanceError,
    GovernanceErrorCode,
    GovernanceStateError,
    ProposalNotFoundError,
)
from tokenomics_core.services.proposal_service import ProposalOutcomeEvaluator

LOGGER = structlog.get_logger(__name__)

Publisher = Callable[[GovernanceEvent], None]


class ProposalRegistry:
    """以提案 ID 保存提案快照的記憶體登錄表。

    同一提案的投票、排程、執行與撤銷以該提案專屬的鎖序列化，
    避免重複投票與更新遺失；不同提案之間互不阻塞。
    每次成功變更後透過治理事件匯流排發佈事件。
    """

    def __init__(
        self,
        *,
        evaluator: ProposalOutcomeEvaluator | None = None,
        publisher: Publisher | None = None,
    ) -> None:
        self._evaluator = evaluator or ProposalOutcomeEvaluator()
        self._publish = publisher or publish_governance_event
        self._proposals: dict[str, Proposal] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def register(self, proposal: Proposal) -> Result[Proposal, GovernanceError]:
        with self._registry_lock:
            if proposal.proposal_id in self._proposals:
                return Err(
                    GovernanceStateError(
                        "提案 ID 已存在。",
                        error_code=GovernanceErrorCode.GOV_PROPOSAL_DUPLICATE_ID,
                        context={"proposal_id": proposal.proposal_id},
                    )
                )
            self._proposals[proposal.proposal_id] = proposal
            self._locks[proposal.proposal_id] = threading.Lock()
        LOGGER.info(
            "governance.registry.registered",
            proposal_id=proposal.proposal_id,
            proposer=proposal.proposer,
        )
        self._publish(
            GovernanceEvent(
                proposal_id=proposal.proposal_id,
                kind="proposal_registered",
                status=None,
                actor=proposal.proposer,
            )
        )
        return Ok(proposal)

    def get(self, proposal_id: str) -> Result[Proposal, GovernanceError]:
        with self._registry_lock:
            proposal = self._proposals.get(proposal_id)
        if proposal is None:
            return Err(ProposalNotFoundError(context={"proposal_id": proposal_id}))
        return Ok(proposal)

    def proposals(self) -> list[Proposal]:
        with self._registry_lock:
            return list(self._proposals.values())

    def state(
        self, proposal_id: str, now: int, execution_window: int | None = None
    ) -> Result[ProposalStatus, GovernanceError]:
        return self.get(proposal_id).and_then(
            lambda proposal: self._evaluator.evaluate_proposal_state(
                proposal, now, execution_window
            )
        )

    def cast_vote(
        self,
        proposal_id: str,
        voter: str,
        support: VoteSupport | int,
        balance: TokenAmount,
        now: int,
        *,
        strategy: VotingStrategy | str | None = None,
        reason: str | None = None,
    ) -> Result[Proposal, GovernanceError]:
        return self._mutate(
            proposal_id,
            lambda proposal: self._evaluator.cast_vote(
                proposal, voter, support, balance, strategy, now, reason=reason
            ),
            kind="vote_cast",
            actor=voter,
            now=now,
        )

    def queue(
        self, proposal_id: str, now: int, execution_delay: int | None = None
    ) -> Result[Proposal, GovernanceError]:
        return self._mutate(
            proposal_id,
            lambda proposal: self._evaluator.queue_proposal(proposal, now, execution_delay),
            kind="proposal_queued",
            actor=None,
            now=now,
        )

    def execute(
        self, proposal_id: str, now: int, execution_window: int | None = None
    ) -> Result[Proposal, GovernanceError]:
        return self._mutate(
            proposal_id,
            lambda proposal: self._evaluator.execute_proposal(proposal, now, execution_window),
            kind="proposal_executed",
            actor=None,
            now=now,
        )

    def cancel(self, proposal_id: str, caller: str, now: int) -> Result[Proposal, GovernanceError]:
        return self._mutate(
            proposal_id,
            lambda proposal: self._evaluator.cancel_proposal(proposal, caller, now),
            kind="proposal_canceled",
            actor=caller,
            now=now,
        )

    # --- internals ---
    def _mutate(
        self,
        proposal_id: str,
        operation: Callable[[Proposal], Result[Proposal, GovernanceError]],
        *,
        kind: GovernanceEventKind,
        actor: str | None,
        now: int,
    ) -> Result[Proposal, GovernanceError]:
        with self._registry_lock:
            lock = self._locks.get(proposal_id)
        if lock is None:
            return Err(ProposalNotFoundError(context={"proposal_id": proposal_id}))

        with lock:
            current = self._proposals[proposal_id]
            result = operation(current)
            if isinstance(result, Err):
                return result
            updated = result.value
            with self._registry_lock:
                self._proposals[proposal_id] = updated
            status = self._evaluator.evaluate_proposal_state(updated, now).unwrap()

        self._publish(
            GovernanceEvent(
                proposal_id=proposal_id,
                kind=kind,
                status=status.value,
                actor=actor,
                timestamp=now,
            )
        )
        return Ok(updated)


__all__ = ["ProposalRegistry"]
