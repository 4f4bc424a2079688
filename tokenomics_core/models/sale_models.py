from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from tokenomics_core.models.token_amount import TokenAmount

__all__ = ["FundraisingTargets", "IcoStage", "TokenPricing"]


@dataclass(slots=True, frozen=True)
class IcoStage:
    """One sale round; USD figures are exact ``Decimal`` values."""

    name: str
    price_usd: Decimal
    supply_percentage: Decimal
    token_amount: TokenAmount
    hard_cap_usd: Decimal


@dataclass(slots=True, frozen=True)
class TokenPricing:
    total_supply: TokenAmount
    initial_supply: TokenAmount
    initial_price_usd: Decimal
    target_price_usd: Decimal
    initial_market_cap_usd: Decimal
    fully_diluted_valuation_usd: Decimal


@dataclass(slots=True, frozen=True)
class FundraisingTargets:
    """Sale caps in USD and in ETH (ETH floored to wei precision)."""

    hard_cap_usd: Decimal
    soft_cap_usd: Decimal
    hard_cap_eth: Decimal
    soft_cap_eth: Decimal
