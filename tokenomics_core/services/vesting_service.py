"""Vesting schedule engine.

兩種歸屬模型共存：
- 分配類別的「月度釋放表」：TGE 於第 0 月解鎖，懸崖期內為 0，之後每月固定釋放。
- 個別授予（VestingSchedule）的線性累積：懸崖期後依釋放間隔階梯式累積。
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import structlog

from tokenomics_core.infra.result import (
    Err,
    Ok,
    Result,
    ValidationError,
    returns_result,
)
from tokenomics_core.models.allocation_models import (
    SECONDS_PER_MONTH,
    AllocationCategory,
    AllocationSchedule,
    MonthlyVestingEntry,
    VestingSchedule,
)
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.distribution_errors import (
    AllocationValidationError,
    DistributionError,
    DistributionErrorCode,
    VestingStateError,
)

LOGGER = structlog.get_logger(__name__)


def _percent(part: TokenAmount, whole: TokenAmount) -> Decimal:
    if whole.is_zero():
        return Decimal(0)
    return part.percent_of(whole)


def vested_at(schedule: VestingSchedule, now: int) -> TokenAmount:
    """Amount of a grant vested at ``now``; assumes the schedule is already validated."""
    at = now
    if schedule.revoked and schedule.revoked_at is not None:
        at = min(now, schedule.revoked_at)
    if at < schedule.cliff_end:
        return TokenAmount.zero(schedule.amount.decimals)
    if at >= schedule.end_timestamp:
        return schedule.amount
    elapsed = at - schedule.start_timestamp
    stepped = elapsed - elapsed % schedule.release_interval_seconds
    return schedule.amount.mul_ratio(stepped, schedule.duration_seconds)


class VestingScheduleEngine:
    """計算分配類別的月度釋放表與個別授予的可釋放數量。

    所有方法皆為純函數：輸入不可變，回傳新的物件；時間一律由呼叫端提供。
    """

    # --- Allocation schedule ---
    @returns_result(
        DistributionError,
        exception_map={
            ValueError: AllocationValidationError,
            TypeError: ValidationError,
        },
    )
    def compute_monthly_schedule(
        self,
        allocation: AllocationCategory,
        months_ahead: int | None = None,
    ) -> Result[AllocationSchedule, DistributionError]:
        """Compute the month-by-month release sequence of one allocation.

        ``months_ahead`` is the last month index emitted; by default the sequence
        stops at the final vesting month.
        """
        if not 0 <= allocation.tge_unlock_percent <= 100:
            return Err(
                AllocationValidationError(
                    "TGE 解鎖比例必須介於 0 到 100 之間。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_TGE_RANGE,
                    context={
                        "allocation": allocation.name,
                        "tge_unlock_percent": allocation.tge_unlock_percent,
                    },
                )
            )
        if allocation.cliff_seconds < 0 or allocation.vesting_seconds < 0:
            return Err(
                AllocationValidationError(
                    "懸崖期與歸屬期不可為負數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_NEGATIVE_DURATION,
                    context={
                        "allocation": allocation.name,
                        "cliff_seconds": allocation.cliff_seconds,
                        "vesting_seconds": allocation.vesting_seconds,
                    },
                )
            )
        if months_ahead is not None and months_ahead < 0:
            return Err(
                AllocationValidationError(
                    "months_ahead 不可為負數。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_WINDOW,
                    context={"allocation": allocation.name, "months_ahead": months_ahead},
                )
            )

        amount = allocation.total_amount
        zero = TokenAmount.zero(amount.decimals)
        tge = allocation.tge_amount
        cliff_months = allocation.cliff_months
        vesting_months = allocation.vesting_months
        remainder = amount - tge

        if vesting_months > 0:
            per_month = remainder.div_floor(vesting_months)
            truncation = remainder - per_month.mul_ratio(vesting_months, 1)
            stranded = zero
        else:
            per_month = zero
            truncation = zero
            stranded = remainder

        last_month = months_ahead if months_ahead is not None else cliff_months + vesting_months
        vesting_end = cliff_months + vesting_months

        entries: list[MonthlyVestingEntry] = []
        cumulative = zero
        for month in range(last_month + 1):
            if month == 0:
                released = tge
            elif cliff_months < month <= vesting_end:
                released = per_month
            else:
                released = zero
            # 累積值不得超過分配總量
            cumulative = (cumulative + released).min(amount)
            entries.append(
                MonthlyVestingEntry(
                    month_index=month,
                    timestamp=allocation.start_timestamp + month * SECONDS_PER_MONTH,
                    released_this_period=released,
                    cumulative_released=cumulative,
                    released_percent=_percent(released, amount),
                    cumulative_percent=_percent(cumulative, amount),
                )
            )

        if stranded:
            LOGGER.warning(
                "vesting.schedule.stranded",
                allocation=allocation.name,
                stranded_amount=stranded,
                vesting_enabled=allocation.vesting_enabled,
            )
        LOGGER.debug(
            "vesting.schedule.computed",
            allocation=allocation.name,
            months=len(entries),
            cliff_months=cliff_months,
            vesting_months=vesting_months,
            truncation_remainder=truncation,
        )
        return Ok(
            AllocationSchedule(
                allocation_name=allocation.name,
                entries=tuple(entries),
                stranded_amount=stranded,
                truncation_remainder=truncation,
            )
        )

    # --- Grant accrual ---
    @returns_result(DistributionError, exception_map={TypeError: ValidationError})
    def validate_schedule(
        self, schedule: VestingSchedule
    ) -> Result[VestingSchedule, DistributionError]:
        """Check grant parameters; returns the schedule unchanged when valid."""
        self._check_schedule(schedule)
        return Ok(schedule)

    @returns_result(DistributionError, exception_map={TypeError: ValidationError})
    def vested_amount(
        self, schedule: VestingSchedule, now: int
    ) -> Result[TokenAmount, DistributionError]:
        self._check_schedule(schedule)
        return Ok(vested_at(schedule, now))

    @returns_result(DistributionError, exception_map={TypeError: ValidationError})
    def releasable_amount(
        self, schedule: VestingSchedule, now: int
    ) -> Result[TokenAmount, DistributionError]:
        self._check_schedule(schedule)
        return Ok(vested_at(schedule, now) - schedule.released_amount)

    @returns_result(DistributionError, exception_map={TypeError: ValidationError})
    def release(
        self, schedule: VestingSchedule, now: int
    ) -> Result[VestingSchedule, DistributionError]:
        """Advance ``released`` to everything vested at ``now``."""
        self._check_schedule(schedule)
        vested = vested_at(schedule, now)
        releasable = vested - schedule.released_amount
        if releasable.is_zero():
            return Err(
                VestingStateError(
                    "目前沒有可釋放的代幣。",
                    error_code=DistributionErrorCode.DIST_STATE_NOTHING_RELEASABLE,
                    context={
                        "schedule_id": schedule.schedule_id,
                        "recipient": schedule.recipient,
                        "now": now,
                    },
                )
            )
        LOGGER.info(
            "vesting.grant.released",
            schedule_id=schedule.schedule_id,
            recipient=schedule.recipient,
            amount=releasable,
            released_total=vested,
        )
        return Ok(replace(schedule, released=vested))

    @returns_result(DistributionError, exception_map={TypeError: ValidationError})
    def revoke(
        self, schedule: VestingSchedule, now: int
    ) -> Result[VestingSchedule, DistributionError]:
        """Freeze accrual at ``now``; a revoked grant never vests further."""
        if schedule.revoked:
            return Err(
                VestingStateError(
                    "此歸屬排程已被撤銷。",
                    error_code=DistributionErrorCode.DIST_STATE_ALREADY_REVOKED,
                    context={
                        "schedule_id": schedule.schedule_id,
                        "revoked_at": schedule.revoked_at,
                    },
                )
            )
        self._check_schedule(schedule)
        LOGGER.info(
            "vesting.grant.revoked",
            schedule_id=schedule.schedule_id,
            recipient=schedule.recipient,
            revoked_at=now,
            vested=vested_at(schedule, now),
        )
        return Ok(replace(schedule, revoked=True, revoked_at=now))

    # --- internals ---
    @staticmethod
    def _check_schedule(schedule: VestingSchedule) -> None:
        context = {
            "schedule_id": schedule.schedule_id,
            "cliff_seconds": schedule.cliff_seconds,
            "duration_seconds": schedule.duration_seconds,
            "release_interval_seconds": schedule.release_interval_seconds,
        }
        if schedule.cliff_seconds < 0 or schedule.duration_seconds < 0:
            raise AllocationValidationError(
                "懸崖期與歸屬期不可為負數。",
                error_code=DistributionErrorCode.DIST_VALIDATION_NEGATIVE_DURATION,
                context=context,
            )
        if schedule.cliff_seconds > schedule.duration_seconds:
            raise AllocationValidationError(
                "懸崖期不可長於總歸屬期。",
                error_code=DistributionErrorCode.DIST_VALIDATION_CLIFF_EXCEEDS_DURATION,
                context=context,
            )
        if schedule.release_interval_seconds <= 0:
            raise AllocationValidationError(
                "釋放間隔必須為正數。",
                error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_INTERVAL,
                context=context,
            )
        if schedule.released_amount.decimals != schedule.amount.decimals:
            raise AllocationValidationError(
                "已釋放數量與授予數量的精度不一致。",
                error_code=DistributionErrorCode.DIST_VALIDATION_DECIMALS_MISMATCH,
                context=context,
            )
        if schedule.released_amount > schedule.amount:
            raise AllocationValidationError(
                "已釋放數量超過授予數量。",
                error_code=DistributionErrorCode.DIST_VALIDATION_OVER_RELEASED,
                context={**context, "released": str(schedule.released_amount)},
            )


__all__ = ["VestingScheduleEngine", "vested_at"]
