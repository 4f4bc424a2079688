from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, Sequence, overload

from tokenomics_core.models.token_amount import TokenAmount

__all__ = [
    "SECONDS_PER_MONTH",
    "AllocationCategory",
    "AllocationSchedule",
    "MonthlyVestingEntry",
    "ReleaseProjection",
    "TokenDistributionStats",
    "UpcomingRelease",
    "VestingSchedule",
    "normalize_address",
    "utc_datetime",
]

# 30 天近似月份，為系統既定慣例（非日曆月）
SECONDS_PER_MONTH = 30 * 24 * 60 * 60


def utc_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def normalize_address(address: str) -> str:
    """Addresses compare case-insensitively (hex checksums only differ in case)."""
    return address.strip().lower()


@dataclass(slots=True, frozen=True)
class AllocationCategory:
    """One slice of the token distribution and its release terms."""

    name: str
    percentage_of_supply: Decimal
    total_amount: TokenAmount
    vesting_enabled: bool = True
    cliff_seconds: int = 0
    vesting_seconds: int = 0
    tge_unlock_percent: int = 0
    release_interval_seconds: int = SECONDS_PER_MONTH
    start_timestamp: int = 0
    wallet: str | None = None
    description: str | None = None

    @property
    def cliff_months(self) -> int:
        return self.cliff_seconds // SECONDS_PER_MONTH

    @property
    def vesting_months(self) -> int:
        if not self.vesting_enabled:
            return 0
        return self.vesting_seconds // SECONDS_PER_MONTH

    @property
    def tge_amount(self) -> TokenAmount:
        return self.total_amount.mul_percent(self.tge_unlock_percent * 100)


@dataclass(slots=True, frozen=True)
class VestingSchedule:
    """A single grant; ``duration_seconds`` includes the cliff."""

    recipient: str
    category: str
    amount: TokenAmount
    start_timestamp: int
    cliff_seconds: int
    duration_seconds: int
    release_interval_seconds: int = SECONDS_PER_MONTH
    released: TokenAmount | None = None
    revoked: bool = False
    revoked_at: int | None = None
    schedule_id: str | None = None

    def __post_init__(self) -> None:
        if self.released is None:
            object.__setattr__(self, "released", TokenAmount.zero(self.amount.decimals))

    @property
    def released_amount(self) -> TokenAmount:
        if self.released is None:
            return TokenAmount.zero(self.amount.decimals)
        return self.released

    @property
    def cliff_end(self) -> int:
        return self.start_timestamp + self.cliff_seconds

    @property
    def end_timestamp(self) -> int:
        return self.start_timestamp + self.duration_seconds


@dataclass(slots=True, frozen=True)
class MonthlyVestingEntry:
    month_index: int
    timestamp: int
    released_this_period: TokenAmount
    cumulative_released: TokenAmount
    released_percent: Decimal
    cumulative_percent: Decimal

    @property
    def date(self) -> datetime:
        return utc_datetime(self.timestamp)


@dataclass(slots=True, frozen=True)
class AllocationSchedule(Sequence[MonthlyVestingEntry]):
    """Monthly release sequence of one allocation.

    ``stranded_amount`` is the non-TGE remainder that is never released because the
    allocation has no vesting months; ``truncation_remainder`` is what the per-month
    floor division leaves behind.
    """

    allocation_name: str
    entries: tuple[MonthlyVestingEntry, ...]
    stranded_amount: TokenAmount
    truncation_remainder: TokenAmount

    @overload
    def __getitem__(self, index: int) -> MonthlyVestingEntry: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[MonthlyVestingEntry]: ...

    def __getitem__(
        self, index: int | slice
    ) -> MonthlyVestingEntry | Sequence[MonthlyVestingEntry]:
        return self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[MonthlyVestingEntry]:
        return iter(self.entries)

    @property
    def total_released(self) -> TokenAmount:
        if not self.entries:
            return TokenAmount.zero(self.stranded_amount.decimals)
        return self.entries[-1].cumulative_released

    def cumulative_at(self, now: int) -> TokenAmount:
        """Cumulative release of every entry whose timestamp is at or before ``now``."""
        released = TokenAmount.zero(self.stranded_amount.decimals)
        for entry in self.entries:
            if entry.timestamp > now:
                break
            released = entry.cumulative_released
        return released


@dataclass(slots=True, frozen=True)
class TokenDistributionStats:
    total_supply: TokenAmount
    initial_circulating: TokenAmount
    initial_circulating_percent: Decimal
    total_allocated: TokenAmount
    total_allocated_percent: Decimal
    max_circulating: TokenAmount
    current_circulating: TokenAmount
    current_circulating_percent: Decimal
    locked_tokens: TokenAmount
    locked_tokens_percent: Decimal


@dataclass(slots=True, frozen=True)
class UpcomingRelease:
    date: datetime
    amount: TokenAmount
    percentage: Decimal
    recipients: int
    categories: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ReleaseProjection:
    dates: tuple[datetime, ...] = field(default_factory=tuple)
    amounts: tuple[TokenAmount, ...] = field(default_factory=tuple)
    percentages: tuple[Decimal, ...] = field(default_factory=tuple)
    cumulative: tuple[TokenAmount, ...] = field(default_factory=tuple)
    cumulative_percentages: tuple[Decimal, ...] = field(default_factory=tuple)
