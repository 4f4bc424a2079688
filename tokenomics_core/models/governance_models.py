from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum

from tokenomics_core.models.allocation_models import normalize_address
from tokenomics_core.models.token_amount import TokenAmount

__all__ = [
    "TERMINAL_STATUSES",
    "Proposal",
    "ProposalStatus",
    "Vote",
    "VoteSupport",
    "VotingResults",
    "VotingStrategy",
]


class VoteSupport(IntEnum):
    AGAINST = 0
    FOR = 1
    ABSTAIN = 2


class ProposalStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELED = "canceled"
    DEFEATED = "defeated"
    SUCCEEDED = "succeeded"
    QUEUED = "queued"
    EXPIRED = "expired"
    EXECUTED = "executed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        ProposalStatus.CANCELED,
        ProposalStatus.DEFEATED,
        ProposalStatus.EXPIRED,
        ProposalStatus.EXECUTED,
    }
)


class VotingStrategy(str, Enum):
    SIMPLE = "simple"
    QUADRATIC = "quadratic"
    WEIGHTED = "weighted"


@dataclass(slots=True, frozen=True)
class Vote:
    proposal_id: str
    voter: str
    support: VoteSupport
    weight: TokenAmount
    timestamp: int
    reason: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "voter", normalize_address(self.voter))


@dataclass(slots=True, frozen=True)
class Proposal:
    """提案快照；票數只增不減，直到進入終止狀態。

    ``total_supply`` 為建立提案時的投票供給快照，供法定人數計算使用。
    """

    proposal_id: str
    proposer: str
    start_time: int
    end_time: int
    total_supply: TokenAmount
    quorum_percent: int = 4
    required_majority_percent: int = 51
    voting_strategy: VotingStrategy = VotingStrategy.SIMPLE
    for_votes: TokenAmount | None = None
    against_votes: TokenAmount | None = None
    abstain_votes: TokenAmount | None = None
    votes: tuple[Vote, ...] = field(default_factory=tuple)
    executed: bool = False
    canceled: bool = False
    queued_eta: int | None = None
    title: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        zero = TokenAmount.zero(self.total_supply.decimals)
        for name in ("for_votes", "against_votes", "abstain_votes"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, zero)

    @property
    def decimals(self) -> int:
        return self.total_supply.decimals

    def tally_for(self, support: VoteSupport) -> TokenAmount:
        value = {
            VoteSupport.FOR: self.for_votes,
            VoteSupport.AGAINST: self.against_votes,
            VoteSupport.ABSTAIN: self.abstain_votes,
        }[support]
        return value if value is not None else TokenAmount.zero(self.decimals)

    def vote_of(self, voter: str) -> Vote | None:
        key = normalize_address(voter)
        for vote in self.votes:
            if vote.voter == key:
                return vote
        return None

    def has_voted(self, voter: str) -> bool:
        return self.vote_of(voter) is not None


@dataclass(slots=True, frozen=True)
class VotingResults:
    for_votes: TokenAmount
    against_votes: TokenAmount
    abstain_votes: TokenAmount
    total_votes: TokenAmount
    for_percentage: Decimal
    against_percentage: Decimal
    abstain_percentage: Decimal
    quorum_percent_reached: int
    quorum_reached: bool
    majority_reached: bool
    voter_count: int

    @property
    def is_passing(self) -> bool:
        return self.quorum_reached and self.majority_reached
