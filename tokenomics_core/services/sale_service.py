"""Token sale figures: ICO stage caps, launch pricing and fundraising targets.

代幣數量一律以 ``TokenAmount`` 基點比例向下取整；美元與 ETH 金額以
``Decimal`` 精確計算，ETH 金額截斷至 wei 精度。
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Sequence

import structlog

from tokenomics_core.config.settings import get_settings
from tokenomics_core.infra.result import Err, Ok, Result, ValidationError, returns_result
from tokenomics_core.models.sale_models import FundraisingTargets, IcoStage, TokenPricing
from tokenomics_core.models.token_amount import TokenAmount
from tokenomics_core.services.distribution_errors import (
    AllocationValidationError,
    DistributionError,
    DistributionErrorCode,
)

LOGGER = structlog.get_logger(__name__)

STAGE_NAMES: tuple[str, ...] = ("Seed", "Private", "Public")
DEFAULT_STAGE_MULTIPLIERS: tuple[Decimal, ...] = (Decimal("0.5"), Decimal("0.75"), Decimal(1))
DEFAULT_STAGE_PERCENTAGES: tuple[Decimal, ...] = (Decimal(5), Decimal(10), Decimal(25))

_WEI = Decimal("1E-18")
_HUNDRED = Decimal(100)
_USD_PRECISION = 96

Number = int | str | Decimal


def _to_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, float):
        raise TypeError(f"{field} must not be a float: {value!r}")
    try:
        exact = value if isinstance(value, Decimal) else Decimal(value)
    except InvalidOperation as exc:
        raise AllocationValidationError(
            f"無法解析 {field}。",
            error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_PRICE,
            context={field: str(value)},
            cause=exc,
        ) from exc
    if not exact.is_finite() or exact < 0:
        raise AllocationValidationError(
            f"{field} 必須為非負的有限數值。",
            error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_PRICE,
            context={field: str(value)},
        )
    return exact


def _percent_bps(value: Number, field: str) -> int:
    exact = _to_decimal(value, field)
    bps = exact * 100
    if bps != bps.to_integral_value():
        raise AllocationValidationError(
            f"{field} 最多只能有兩位小數。",
            error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_PRECISION,
            context={field: str(value)},
        )
    if exact > _HUNDRED:
        raise AllocationValidationError(
            f"{field} 不可超過 100。",
            error_code=DistributionErrorCode.DIST_VALIDATION_PERCENT_SUM,
            context={field: str(value)},
        )
    return int(bps)


def _supply(total_supply: TokenAmount | int) -> TokenAmount:
    if isinstance(total_supply, TokenAmount):
        return total_supply
    return TokenAmount.from_tokens(total_supply, get_settings().decimals)


def _usd(amount: TokenAmount, price: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _USD_PRECISION
        return amount.to_decimal() * price


def stage_name(index: int) -> str:
    return STAGE_NAMES[index] if index < len(STAGE_NAMES) else f"Stage {index + 1}"


class TokenSaleCalculator:
    """銷售階段、上市定價與募資目標的計算服務。

    ``total_supply`` 可傳入 ``TokenAmount``，或以整數代幣數搭配
    ``TOKENOMICS_DECIMALS`` 設定的精度。
    """

    @returns_result(
        DistributionError,
        exception_map={ValueError: AllocationValidationError, TypeError: ValidationError},
    )
    def compute_ico_stages(
        self,
        total_supply: TokenAmount | int,
        initial_price_usd: Number,
        stage_multipliers: Sequence[Number] = DEFAULT_STAGE_MULTIPLIERS,
        stage_percentages: Sequence[Number] = DEFAULT_STAGE_PERCENTAGES,
    ) -> Result[list[IcoStage], DistributionError]:
        """Price, token amount and hard cap of each sale stage.

        第 i 階段價格為 ``initial_price_usd × stage_multipliers[i]``，
        配額為總供給量的 ``stage_percentages[i]``%，硬頂為配額乘以價格。
        """
        if len(stage_multipliers) != len(stage_percentages):
            return Err(
                AllocationValidationError(
                    "階段價格倍數與供給比例的數量必須相同。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_STAGE_MISMATCH,
                    context={
                        "multipliers": len(stage_multipliers),
                        "percentages": len(stage_percentages),
                    },
                )
            )
        supply = _supply(total_supply)
        base_price = _to_decimal(initial_price_usd, "initial_price_usd")
        multipliers = [_to_decimal(m, "stage_multiplier") for m in stage_multipliers]
        shares = [_percent_bps(p, "stage_percentage") for p in stage_percentages]
        if sum(shares) > 100 * 100:
            return Err(
                AllocationValidationError(
                    "各階段供給比例合計超過 100%。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_STAGE_OVERSUBSCRIBED,
                    context={"total_percentage": str(Decimal(sum(shares)) / 100)},
                )
            )

        stages = []
        for index, (multiplier, bps) in enumerate(zip(multipliers, shares)):
            price = base_price * multiplier
            tokens = supply.mul_percent(bps)
            stages.append(
                IcoStage(
                    name=stage_name(index),
                    price_usd=price,
                    supply_percentage=Decimal(bps) / 100,
                    token_amount=tokens,
                    hard_cap_usd=_usd(tokens, price),
                )
            )
        LOGGER.debug(
            "sale.stages.computed",
            stages=len(stages),
            total_supply=supply,
        )
        return Ok(stages)

    @returns_result(
        DistributionError,
        exception_map={ValueError: AllocationValidationError, TypeError: ValidationError},
    )
    def compute_token_pricing(
        self,
        total_supply: TokenAmount | int,
        initial_price_usd: Number,
        circulating_percentage: Number = 25,
        target_price_multiplier: Number = 5,
    ) -> Result[TokenPricing, DistributionError]:
        """Circulating supply at TGE, market cap, fully diluted valuation and target price."""
        supply = _supply(total_supply)
        price = _to_decimal(initial_price_usd, "initial_price_usd")
        circulating_bps = _percent_bps(circulating_percentage, "circulating_percentage")
        multiplier = _to_decimal(target_price_multiplier, "target_price_multiplier")
        circulating = supply.mul_percent(circulating_bps)
        pricing = TokenPricing(
            total_supply=supply,
            initial_supply=circulating,
            initial_price_usd=price,
            target_price_usd=price * multiplier,
            initial_market_cap_usd=_usd(circulating, price),
            fully_diluted_valuation_usd=_usd(supply, price),
        )
        LOGGER.debug(
            "sale.pricing.computed",
            initial_supply=circulating,
            market_cap_usd=str(pricing.initial_market_cap_usd),
            fdv_usd=str(pricing.fully_diluted_valuation_usd),
        )
        return Ok(pricing)

    @returns_result(
        DistributionError,
        exception_map={ValueError: AllocationValidationError, TypeError: ValidationError},
    )
    def compute_fundraising(
        self,
        hard_cap_usd: Number,
        soft_cap_percentage: Number = 60,
        eth_price_usd: Number = 2000,
    ) -> Result[FundraisingTargets, DistributionError]:
        """Soft cap as a share of the hard cap, both also expressed in ETH."""
        hard_cap = _to_decimal(hard_cap_usd, "hard_cap_usd")
        eth_price = _to_decimal(eth_price_usd, "eth_price_usd")
        if eth_price == 0:
            return Err(
                AllocationValidationError(
                    "ETH 價格必須大於零。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_PRICE,
                    context={"eth_price_usd": str(eth_price_usd)},
                )
            )
        bps = _percent_bps(soft_cap_percentage, "soft_cap_percentage")
        with localcontext() as ctx:
            ctx.prec = _USD_PRECISION
            soft_cap = hard_cap * bps / 10_000
            targets = FundraisingTargets(
                hard_cap_usd=hard_cap,
                soft_cap_usd=soft_cap,
                hard_cap_eth=(hard_cap / eth_price).quantize(_WEI, rounding=ROUND_DOWN),
                soft_cap_eth=(soft_cap / eth_price).quantize(_WEI, rounding=ROUND_DOWN),
            )
        LOGGER.debug(
            "sale.fundraising.computed",
            hard_cap_usd=str(hard_cap),
            soft_cap_usd=str(soft_cap),
            eth_price_usd=str(eth_price),
        )
        return Ok(targets)

    @returns_result(
        DistributionError,
        exception_map={ValueError: AllocationValidationError, TypeError: ValidationError},
    )
    def tokens_for_usd(
        self, usd: Number, price_usd: Number, decimals: int | None = None
    ) -> Result[TokenAmount, DistributionError]:
        """Tokens ``usd`` buys at ``price_usd``, floored to base units."""
        spend = _to_decimal(usd, "usd")
        price = _to_decimal(price_usd, "price_usd")
        if price == 0:
            return Err(
                AllocationValidationError(
                    "代幣價格必須大於零。",
                    error_code=DistributionErrorCode.DIST_VALIDATION_INVALID_PRICE,
                    context={"price_usd": str(price_usd)},
                )
            )
        scale_decimals = get_settings().decimals if decimals is None else decimals
        with localcontext() as ctx:
            ctx.prec = _USD_PRECISION
            raw = (spend.scaleb(scale_decimals) / price).to_integral_value(rounding=ROUND_DOWN)
        return Ok(TokenAmount(int(raw), scale_decimals))

    @returns_result(
        DistributionError,
        exception_map={ValueError: AllocationValidationError, TypeError: ValidationError},
    )
    def usd_value(
        self, amount: TokenAmount, price_usd: Number
    ) -> Result[Decimal, DistributionError]:
        return Ok(_usd(amount, _to_decimal(price_usd, "price_usd")))


__all__ = [
    "DEFAULT_STAGE_MULTIPLIERS",
    "DEFAULT_STAGE_PERCENTAGES",
    "STAGE_NAMES",
    "TokenSaleCalculator",
    "stage_name",
]
