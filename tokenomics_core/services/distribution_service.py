"""Distribution aggregation: supply statistics, upcoming releases and projections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Sequence

import structlog

from tokenomics_core.config.settings import get_settings
from tokenomics_core.infra.result import (
    Err,
    Ok,
    Result,
    TokenArithmeticError,
    ValidationError,
    collect,
    returns_result,
)
from tokenomics_core.models.allocation_models import (
    SECONDS_PER_MONTH,
    AllocationCategory,
    AllocationSchedule,
    ReleaseProjection,
    TokenDistributionStats,
    UpcomingRelease,
    VestingSchedule,
    normalize_address,
    utc_datetime,
)
from tokenomics_core.models.token_amount import TokenAmount, sum_amounts
from tokenomics_core.services.distribution_errors import (
    AllocationNotFoundError,
    AllocationValidationError,
    DistributionError,
    DistributionErrorCode,
)
from tokenomics_core.services.vesting_service import VestingScheduleEngine, vested_at

LOGGER = structlog.get_logger(__name__)

_FULL_SUPPLY_PERCENT = Decimal(100)


@dataclass(frozen=True, slots=True)
class AllocationTerms:
    name: str
    percentage: Decimal
    tge_unlock_percent: int
    cliff_months: int
    vesting_months: int
    vesting_enabled: bool
    description: str


# 預設八類分配（Public Sale 至 Treasury），百分比合計 100
DEFAULT_ALLOCATION_TERMS: tuple[AllocationTerms, ...] = (
    AllocationTerms(
        "Public Sale", Decimal(25), 20, 0, 6, True, "Tokens allocated for the public sale."
    ),
    AllocationTerms(
        "Private Sale", Decimal(15), 10, 1, 12, True, "Tokens allocated for private investors."
    ),
    AllocationTerms(
        "Team", Decimal(20), 0, 6, 24, True, "Tokens allocated to the team and founders."
    ),
    AllocationTerms(
        "Advisors", Decimal(5), 0, 3, 18, True, "Tokens allocated to project advisors."
    ),
    AllocationTerms(
        "Marketing", Decimal(10), 10, 0, 18, True, "Tokens allocated for marketing activities."
    ),
    AllocationTerms(
        "Ecosystem",
        Decimal(15),
        5,
        3,
        36,
        True,
        "Tokens allocated for ecosystem development and partnerships.",
    ),
    AllocationTerms(
        "Liquidity",
        Decimal(5),
        100,
        0,
        0,
        False,
        "Tokens allocated for providing liquidity on DEXes.",
    ),
    AllocationTerms(
        "Treasury", Decimal(5), 0, 6, 36, True, "Tokens allocated for protocol treasury."
    ),
)


def _month_start(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1, tzinfo=timezone.utc)


def _next_month_start(moment: datetime) -> datetime:
    if moment.month == 12:
        return datetime(moment.year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(moment.year, moment.month + 1, 1, tzinfo=timezone.utc)


def _month_buckets(first: int, last: int) -> list[tuple[int, int]]:
    """Split ``[first, last]`` into half-open ranges cut at UTC month boundaries."""
    bounds = [first]
    cursor = _next_month_start(utc_datetime(first))
    end = last + 1
    while int(cursor.timestamp()) < end:
        bounds.append(int(cursor.timestamp()))
        cursor = _next_month_start(cursor)
    bounds.append(end)
    return list(zip(bounds, bounds[1:]))


class DistributionAggregator:
    """彙整多個分配類別的流通量統計、即將解鎖與釋放預測。"""

    def __init__(self, *, vesting_engine: VestingScheduleEngine | None = None) -> None:
        self._engine = vesting_engine or VestingScheduleEngine()

    # --- Statistics ---
    @returns_result(
        DistributionError,
        exception_map={
            ValueError: AllocationValidationError,
            TypeError: ValidationError,
        },
    )
    def compute_distribution_stats(
        self,
        allocations: Sequence[AllocationCategory],
        total_supply: TokenAmount,
        now: int,
    ) -> Result[TokenDistributionStats, DistributionError]:
        """Aggregate supply and circulation figures across every allocation at ``now``."""
        self._validate_allocations(allocations, total_supply)
        if total_supply.is_zero():
            raise TokenArithmeticError(
                "總供給量為零，無法計算百分比。",
                context={"allocations": len(allocations)},
            )

        schedules_result = collect(
            self._engine.compute_monthly_schedule(allocation) for allocation in allocations
        )
        if isinstance(schedules_result, Err):
            return schedules_result
        schedules: list[AllocationSchedule] = schedules_result.value

        decimals = total_supply.decimals
        initial = sum_amounts((a.tge_amount for a in allocations), decimals)
        total_allocated = sum_amounts((a.total_amount for a in allocations), decimals)
        current = sum_amounts((s.cumulative_at(now) for s in schedules), decimals)
        max_circulating = sum_amounts((s.total_released for s in schedules), decimals)
        locked = total_allocated - current

        stats = TokenDistributionStats(
            total_supply=total_supply,
            initial_circulating=initial,
            initial_circulating_percent=initial.percent_of(total_supply),
            total_allocated=total_allocated,
            total_allocated_percent=total_allocated.percent_of(total_supply),
            max_circulating=max_circulating,
            current_circulating=current,
            current_circulating_percent=current.percent_of(total_supply),
            locked_tokens=locked,
            locked_tokens_percent=locked.percent_of(total_supply),
        )
        LOGGER.debug(
            "distribution.stats.computed",
            allocations=len(allocations),
            now=now,
            current_circulating=current,
            locked_tokens=locked,
        )
        return Ok(stats)

    # --- Upcoming releases ---
    @returns_result(
        DistributionError,
        exception_map={
            ValueError: AllocationValidationError,
            TypeError: ValidationError,
        },
    )
    def compute_upcoming_releases(
        self,
        schedules: Sequence[VestingSchedule],
        now: int,
        lookahead_months: int | None = None,
        total_supply: TokenAmount | None = None,
    ) -> Result[list[UpcomingRelease], DistributionError]:
        """Group grant releases falling in ``(now, now + lookahead]`` by UTC calendar month.

        Months without any release are omitted. Percentages are relative to
        ``total_supply`` or, when omitted, to the sum of the schedules' amounts.
        """
        months = (
            lookahead_months if lookahead_months is not None else get_settings().lookahead_months
        )
        if months <= 0:
            return Err(
                AllocationValidationError(
                    "預測月數必須為正數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_WINDOW,
                    context={"lookahead_months": months},
                )
            )
        if not schedules:
            return Ok([])

        checked = collect(self._engine.validate_schedule(schedule) for schedule in schedules)
        if isinstance(checked, Err):
            return checked
        decimals = schedules[0].amount.decimals
        if any(s.amount.decimals != decimals for s in schedules) or (
            total_supply is not None and total_supply.decimals != decimals
        ):
            return Err(
                AllocationValidationError(
                    "歸屬排程的代幣精度不一致。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_DECIMALS_MISMATCH,
                    context={"decimals": sorted({s.amount.decimals for s in schedules})},
                )
            )
        denominator = (
            total_supply
            if total_supply is not None
            else sum_amounts((s.amount for s in schedules), decimals)
        )

        window_end = now + months * SECONDS_PER_MONTH
        releases: list[UpcomingRelease] = []
        for start, stop in _month_buckets(now + 1, window_end):
            amount = TokenAmount.zero(decimals)
            categories: list[str] = []
            recipients: set[str] = set()
            for schedule in schedules:
                delta = vested_at(schedule, stop - 1) - vested_at(schedule, start - 1)
                if delta.is_zero():
                    continue
                amount = amount + delta
                recipients.add(normalize_address(schedule.recipient))
                if schedule.category not in categories:
                    categories.append(schedule.category)
            if amount.is_zero():
                continue
            releases.append(
                UpcomingRelease(
                    date=_month_start(utc_datetime(start)),
                    amount=amount,
                    percentage=amount.percent_of(denominator),
                    recipients=len(recipients),
                    categories=tuple(categories),
                )
            )

        LOGGER.debug(
            "distribution.upcoming.computed",
            schedules=len(schedules),
            lookahead_months=months,
            buckets=len(releases),
        )
        return Ok(releases)

    # --- Projection ---
    @returns_result(
        DistributionError,
        exception_map={
            ValueError: AllocationValidationError,
            TypeError: ValidationError,
        },
    )
    def compute_release_projection(
        self,
        allocations: Sequence[AllocationCategory],
        total_supply: TokenAmount,
        months: int | None = None,
    ) -> Result[ReleaseProjection, DistributionError]:
        """Month-by-month aggregate release from TGE (month 0) through ``months``.

        Allocations are aligned on their month index; dates count from the
        earliest allocation start.
        """
        horizon = months if months is not None else get_settings().projection_months
        if horizon < 0:
            return Err(
                AllocationValidationError(
                    "預測月數不可為負數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_WINDOW,
                    context={"months": horizon},
                )
            )
        self._validate_allocations(allocations, total_supply)
        if total_supply.is_zero():
            raise TokenArithmeticError("總供給量為零，無法計算百分比。")

        schedules_result = collect(
            self._engine.compute_monthly_schedule(allocation, horizon)
            for allocation in allocations
        )
        if isinstance(schedules_result, Err):
            return schedules_result
        schedules: list[AllocationSchedule] = schedules_result.value

        origin = min(a.start_timestamp for a in allocations)
        zero = TokenAmount.zero(total_supply.decimals)
        dates: list[datetime] = []
        amounts: list[TokenAmount] = []
        cumulative: list[TokenAmount] = []
        running = zero
        for month in range(horizon + 1):
            released = sum_amounts(
                (s[month].released_this_period for s in schedules), total_supply.decimals
            )
            running = running + released
            dates.append(utc_datetime(origin + month * SECONDS_PER_MONTH))
            amounts.append(released)
            cumulative.append(running)

        return Ok(
            ReleaseProjection(
                dates=tuple(dates),
                amounts=tuple(amounts),
                percentages=tuple(a.percent_of(total_supply) for a in amounts),
                cumulative=tuple(cumulative),
                cumulative_percentages=tuple(c.percent_of(total_supply) for c in cumulative),
            )
        )

    # --- Lookups ---
    @returns_result(DistributionError)
    def personal_distribution(
        self, schedules: Iterable[VestingSchedule], recipient: str
    ) -> Result[dict[str, TokenAmount], DistributionError]:
        """Total granted amount per category for one recipient, in first-seen order."""
        key = normalize_address(recipient)
        totals: dict[str, TokenAmount] = {}
        for schedule in schedules:
            if normalize_address(schedule.recipient) != key:
                continue
            category = schedule.category or "Unknown"
            current = totals.get(category)
            totals[category] = schedule.amount if current is None else current + schedule.amount
        return Ok(totals)

    @returns_result(DistributionError)
    def find_allocation(
        self, allocations: Iterable[AllocationCategory], name: str
    ) -> Result[AllocationCategory, DistributionError]:
        wanted = name.strip().lower()
        for allocation in allocations:
            if allocation.name.strip().lower() == wanted:
                return Ok(allocation)
        return Err(AllocationNotFoundError(context={"name": name}))

    @returns_result(
        DistributionError,
        exception_map={
            ValueError: AllocationValidationError,
            TypeError: ValidationError,
        },
    )
    def build_allocation(
        self,
        name: str,
        percentage: int | str | Decimal,
        total_supply: TokenAmount,
        *,
        tge_unlock_percent: int = 0,
        cliff_months: int = 0,
        vesting_months: int = 0,
        vesting_enabled: bool = True,
        start_timestamp: int = 0,
        wallet: str | None = None,
        description: str | None = None,
    ) -> Result[AllocationCategory, DistributionError]:
        """Build an allocation whose amount is ``percentage`` of ``total_supply``."""
        if isinstance(percentage, float):
            raise TypeError(f"percentage must not be a float: {percentage!r}")
        try:
            exact = Decimal(percentage)
        except InvalidOperation as exc:
            raise AllocationValidationError(
                "無法解析分配百分比。",
                error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_PRECISION,
                context={"name": name, "percentage": str(percentage)},
                cause=exc,
            ) from exc
        bps = exact * 100 if exact.is_finite() else exact
        if not exact.is_finite() or bps != bps.to_integral_value():
            return Err(
                AllocationValidationError(
                    "分配百分比最多只能有兩位小數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_PRECISION,
                    context={"name": name, "percentage": str(percentage)},
                )
            )
        if not 0 <= exact <= _FULL_SUPPLY_PERCENT:
            return Err(
                AllocationValidationError(
                    "分配百分比必須介於 0 到 100 之間。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_SUM,
                    context={"name": name, "percentage": str(percentage)},
                )
            )
        if not 0 <= tge_unlock_percent <= 100:
            return Err(
                AllocationValidationError(
                    "TGE 解鎖比例必須介於 0 到 100 之間。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_TGE_RANGE,
                    context={"name": name, "tge_unlock_percent": tge_unlock_percent},
                )
            )
        if cliff_months < 0 or vesting_months < 0:
            return Err(
                AllocationValidationError(
                    "懸崖期與歸屬期不可為負數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_NEGATIVE_DURATION,
                    context={"cliff_months": cliff_months, "vesting_months": vesting_months},
                )
            )
        return Ok(
            AllocationCategory(
                name=name,
                percentage_of_supply=exact,
                total_amount=total_supply.mul_percent(int(bps)),
                vesting_enabled=vesting_enabled,
                cliff_seconds=cliff_months * SECONDS_PER_MONTH,
                vesting_seconds=vesting_months * SECONDS_PER_MONTH,
                tge_unlock_percent=tge_unlock_percent,
                start_timestamp=start_timestamp,
                wallet=wallet,
                description=description,
            )
        )

    def default_allocation_plan(
        self, total_supply: TokenAmount, start_timestamp: int = 0
    ) -> Result[list[AllocationCategory], DistributionError]:
        """The eight-category launch distribution applied to ``total_supply``."""
        return collect(
            self.build_allocation(
                terms.name,
                terms.percentage,
                total_supply,
                tge_unlock_percent=terms.tge_unlock_percent,
                cliff_months=terms.cliff_months,
                vesting_months=terms.vesting_months,
                vesting_enabled=terms.vesting_enabled,
                start_timestamp=start_timestamp,
                description=terms.description,
            )
            for terms in DEFAULT_ALLOCATION_TERMS
        )

    # --- internals ---
    @staticmethod
    def _validate_allocations(
        allocations: Sequence[AllocationCategory], total_supply: TokenAmount
    ) -> None:
        if not allocations:
            raise AllocationValidationError(
                "至少需要一個分配類別。",
                error_code=DistributionErrorCode.DIST_VALIDATION_EMPTY,
            )
        mismatched = [
            a.name for a in allocations if a.total_amount.decimals != total_supply.decimals
        ]
        if mismatched:
            raise AllocationValidationError(
                "分配數量與總供給量的代幣精度不一致。",
                error_code=DistributionErrorCode.DIST_VALIDATION_DECIMALS_MISMATCH,
                context={"allocations": mismatched, "decimals": total_supply.decimals},
            )
        percent_total = sum((a.percentage_of_supply for a in allocations), Decimal(0))
        if percent_total != _FULL_SUPPLY_PERCENT:
            raise AllocationValidationError(
                "分配百分比合計必須為 100。",
                error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_SUM,
                context={"percent_total": str(percent_total)},
            )
        out_of_range = [a.name for a in allocations if not 0 <= a.tge_unlock_percent <= 100]
        if out_of_range:
            raise AllocationValidationError(
                "TGE 解鎖比例必須介於 0 到 100 之間。",
                error_code=DistributionErrorCode.DIST_VALIDATION_TGE_RANGE,
                context={"allocations": out_of_range},
            )


__all__ = [
    "DEFAULT_ALLOCATION_TERMS",
    "AllocationTerms",
    "DistributionAggregator",
]
