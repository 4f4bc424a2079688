"""VestingScheduleEngine 單元測試：月度釋放表與個別授予累積。"""

from __future__ import annotations

from decimal import Decimal

import pytest

from tokenomics_core.infra.result import Err, Ok, StateError, ValidationError
from tokenomics_core.models.allocation_models import (
    SECONDS_PER_MONTH,
    AllocationCategory,
    VestingSchedule,
)
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.distribution_errors import (
    AllocationValidationError,
    DistributionErrorCode,
    VestingStateError,
)
from tokenomics_core.services.vesting_service import VestingScheduleEngine

TGE = 1_700_000_000
DAY = 86_400


def _tokens(value: int) -> TokenAmount:
    return TokenAmount.from_tokens(value)


def _allocation(
    amount: int = 100_000,
    *,
    tge: int = 20,
    cliff_months: int = 2,
    vesting_months: int = 10,
    vesting_enabled: bool = True,
    decimals: int = 18,
) -> AllocationCategory:
    return AllocationCategory(
        name="Private Sale",
        percentage_of_supply=Decimal(15),
        total_amount=TokenAmount.from_tokens(amount, decimals),
        vesting_enabled=vesting_enabled,
        cliff_seconds=cliff_months * SECONDS_PER_MONTH,
        vesting_seconds=vesting_months * SECONDS_PER_MONTH,
        tge_unlock_percent=tge,
        start_timestamp=TGE,
    )


def _grant(**overrides: object) -> VestingSchedule:
    params: dict[str, object] = {
        "recipient": "0xBEEF000000000000000000000000000000000001",
        "category": "Team",
        "amount": TokenAmount(1_200, 0),
        "start_timestamp": TGE,
        "cliff_seconds": 3 * SECONDS_PER_MONTH,
        "duration_seconds": 12 * SECONDS_PER_MONTH,
        "schedule_id": "grant-1",
    }
    params.update(overrides)
    return VestingSchedule(**params)  # type: ignore[arg-type]


@pytest.fixture
def engine() -> VestingScheduleEngine:
    return VestingScheduleEngine()


# =============================================================================
# Monthly allocation schedule
# =============================================================================


@pytest.mark.unit
class TestMonthlySchedule:
    def test_reference_example(self, engine: VestingScheduleEngine) -> None:
        """100,000 tokens, 20% TGE, 2-month cliff, 10-month vesting."""
        schedule = engine.compute_monthly_schedule(_allocation()).unwrap()

        released = [entry.released_this_period for entry in schedule]
        assert released == [_tokens(20_000), _tokens(0), _tokens(0)] + [_tokens(8_000)] * 10
        assert schedule[-1].cumulative_released == _tokens(100_000)
        assert schedule[-1].cumulative_percent == Decimal(100)
        assert schedule.truncation_remainder.is_zero()
        assert schedule.stranded_amount.is_zero()

    def test_entries_carry_month_timestamps(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(_allocation()).unwrap()

        assert [entry.month_index for entry in schedule] == list(range(13))
        assert schedule[3].timestamp == TGE + 3 * SECONDS_PER_MONTH
        assert schedule[0].date.timestamp() == TGE
        assert schedule[0].released_percent == Decimal(20)
        assert schedule[3].released_percent == Decimal(8)

    def test_full_tge_releases_only_month_zero(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(
            _allocation(tge=100, cliff_months=0, vesting_months=6)
        ).unwrap()

        assert schedule[0].released_this_period == _tokens(100_000)
        assert all(entry.released_this_period.is_zero() for entry in schedule[1:])

    def test_zero_cliff_releases_from_month_one(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(
            _allocation(tge=0, cliff_months=0, vesting_months=4)
        ).unwrap()

        assert schedule[0].released_this_period.is_zero()
        assert schedule[1].released_this_period == _tokens(25_000)

    def test_remainder_is_truncated_and_reported(self, engine: VestingScheduleEngine) -> None:
        allocation = _allocation(100, tge=0, cliff_months=0, vesting_months=3, decimals=0)

        schedule = engine.compute_monthly_schedule(allocation).unwrap()

        assert [e.released_this_period.raw for e in schedule] == [0, 33, 33, 33]
        assert schedule.total_released.raw == 99
        assert schedule.truncation_remainder.raw == 1

    def test_zero_vesting_months_strands_remainder(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(
            _allocation(tge=30, cliff_months=0, vesting_months=0)
        ).unwrap()

        assert len(schedule) == 1
        assert schedule.total_released == _tokens(30_000)
        assert schedule.stranded_amount == _tokens(70_000)

    def test_disabled_vesting_behaves_like_zero_months(
        self, engine: VestingScheduleEngine
    ) -> None:
        schedule = engine.compute_monthly_schedule(
            _allocation(tge=50, cliff_months=1, vesting_months=6, vesting_enabled=False)
        ).unwrap()

        assert schedule.stranded_amount == _tokens(50_000)
        assert all(entry.released_this_period.is_zero() for entry in schedule[1:])

    def test_months_ahead_extends_with_zero_releases(
        self, engine: VestingScheduleEngine
    ) -> None:
        schedule = engine.compute_monthly_schedule(_allocation(), months_ahead=20).unwrap()

        assert len(schedule) == 21
        assert all(entry.released_this_period.is_zero() for entry in schedule[13:])
        assert schedule[20].cumulative_released == _tokens(100_000)

    def test_months_ahead_truncates(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(_allocation(), months_ahead=3).unwrap()

        assert len(schedule) == 4
        assert schedule.total_released == _tokens(28_000)

    def test_cumulative_at(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(_allocation()).unwrap()

        assert schedule.cumulative_at(TGE - 1).is_zero()
        assert schedule.cumulative_at(TGE + 4 * SECONDS_PER_MONTH) == _tokens(36_000)

    def test_zero_amount_has_zero_percentages(self, engine: VestingScheduleEngine) -> None:
        schedule = engine.compute_monthly_schedule(_allocation(0)).unwrap()

        assert all(entry.cumulative_percent == 0 for entry in schedule)

    def test_tge_out_of_range_is_validation_error(
        self, engine: VestingScheduleEngine
    ) -> None:
        result = engine.compute_monthly_schedule(_allocation(tge=120))

        assert isinstance(result, Err)
        error = result.unwrap_err()
        assert isinstance(error, ValidationError)
        assert error.error_code is DistributionErrorCode.DIST_VALIDATION_TGE_RANGE

    def test_negative_months_ahead_is_rejected(self, engine: VestingScheduleEngine) -> None:
        result = engine.compute_monthly_schedule(_allocation(), months_ahead=-1)

        assert isinstance(result.unwrap_err(), AllocationValidationError)


# =============================================================================
# Grant accrual
# =============================================================================


@pytest.mark.unit
class TestGrantAccrual:
    def test_nothing_vests_before_cliff(self, engine: VestingScheduleEngine) -> None:
        grant = _grant()
        now = TGE + 3 * SECONDS_PER_MONTH - 1

        assert engine.vested_amount(grant, now).unwrap().is_zero()

    def test_linear_accrual_after_cliff(self, engine: VestingScheduleEngine) -> None:
        grant = _grant()

        vested = engine.vested_amount(grant, TGE + 3 * SECONDS_PER_MONTH).unwrap()

        assert vested.raw == 300

    def test_accrual_steps_by_release_interval(self, engine: VestingScheduleEngine) -> None:
        grant = _grant()
        mid_month = TGE + 4 * SECONDS_PER_MONTH + 10 * DAY

        assert engine.vested_amount(grant, mid_month).unwrap().raw == 400

    def test_fully_vested_after_duration(self, engine: VestingScheduleEngine) -> None:
        grant = _grant()

        vested = engine.vested_amount(grant, TGE + 13 * SECONDS_PER_MONTH).unwrap()

        assert vested == grant.amount

    def test_release_advances_released(self, engine: VestingScheduleEngine) -> None:
        now = TGE + 6 * SECONDS_PER_MONTH
        released = engine.release(_grant(), now).unwrap()

        assert released.released_amount.raw == 600
        assert engine.releasable_amount(released, now).unwrap().is_zero()

    def test_release_with_nothing_releasable_fails(
        self, engine: VestingScheduleEngine
    ) -> None:
        result = engine.release(_grant(), TGE)

        error = result.unwrap_err()
        assert isinstance(error, VestingStateError)
        assert isinstance(error, StateError)

    def test_revoke_freezes_accrual(self, engine: VestingScheduleEngine) -> None:
        revoked_at = TGE + 6 * SECONDS_PER_MONTH
        revoked = engine.revoke(_grant(), revoked_at).unwrap()

        later = engine.vested_amount(revoked, TGE + 24 * SECONDS_PER_MONTH).unwrap()

        assert revoked.revoked is True
        assert later.raw == 600

    def test_double_revoke_fails(self, engine: VestingScheduleEngine) -> None:
        revoked = engine.revoke(_grant(), TGE).unwrap()

        error = engine.revoke(revoked, TGE + 1).unwrap_err()

        assert error.error_code is DistributionErrorCode.DIST_STATE_ALREADY_REVOKED

    def test_inputs_are_not_mutated(self, engine: VestingScheduleEngine) -> None:
        grant = _grant()
        engine.release(grant, TGE + 12 * SECONDS_PER_MONTH)

        assert grant.released_amount.is_zero()

    @pytest.mark.parametrize(
        ("overrides", "code"),
        [
            (
                {"cliff_seconds": 13 * SECONDS_PER_MONTH},
                DistributionErrorCode.DIST_VALIDATION_CLIFF_EXCEEDS_DURATION,
            ),
            ({"duration_seconds": -1}, DistributionErrorCode.DIST_VALIDATION_NEGATIVE_DURATION),
            ({"release_interval_seconds": 0}, DistributionErrorCode.DIST_VALIDATION_INVALID_INTERVAL),
            ({"released": TokenAmount(5_000, 0)}, DistributionErrorCode.DIST_VALIDATION_OVER_RELEASED),
        ],
    )
    def test_validate_schedule_rejects_bad_parameters(
        self,
        engine: VestingScheduleEngine,
        overrides: dict[str, object],
        code: DistributionErrorCode,
    ) -> None:
        result = engine.validate_schedule(_grant(**overrides))

        assert isinstance(result, Err)
        assert result.unwrap_err().error_code is code

    def test_validate_schedule_returns_valid_schedule(
        self, engine: VestingScheduleEngine
    ) -> None:
        grant = _grant()

        assert engine.validate_schedule(grant) == Ok(grant)
