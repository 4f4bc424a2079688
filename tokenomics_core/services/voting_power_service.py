"""Voting power strategies."""

from __future__ import annotations

from typing import Mapping

import structlog

from tokenomics_core.config.settings import get_settings
from tokenomics_core.infra.result import (
    Err,
    Ok,
    Result,
    ValidationError,
    returns_result,
)
from tokenomics_core.models.allocation_models import normalize_address
from tokenomics_core.models.governance_models import VotingStrategy
from tokenomics_core.models.token_amount import TokenAmount, sum_amounts
from tokenomics_core.services.governance_errors import (
    GovernanceError,
    GovernanceErrorCode,
    GovernanceValidationError,
    UnknownVotingStrategyError,
)

LOGGER = structlog.get_logger(__name__)

# (最低整數代幣持有量, 分子, 分母)，由高至低比對
WEIGHTED_TIERS: tuple[tuple[int, int, int], ...] = (
    (1_000_000, 2, 1),
    (100_000, 15, 10),
    (10_000, 12, 10),
)


def parse_strategy(strategy: VotingStrategy | str) -> VotingStrategy:
    """Accept an enum member or its identifier; raises ``UnknownVotingStrategyError``."""
    if isinstance(strategy, VotingStrategy):
        return strategy
    try:
        return VotingStrategy(str(strategy).strip().lower())
    except ValueError as exc:
        raise UnknownVotingStrategyError(
            f"不支援的投票策略：{strategy!r}",
            context={
                "strategy": str(strategy),
                "supported": [s.value for s in VotingStrategy],
            },
            cause=exc,
        ) from exc


def power_of(balance: TokenAmount, strategy: VotingStrategy) -> TokenAmount:
    if strategy is VotingStrategy.SIMPLE:
        return balance
    if strategy is VotingStrategy.QUADRATIC:
        return balance.isqrt()
    whole = balance.whole_tokens
    for minimum, numerator, denominator in WEIGHTED_TIERS:
        if whole >= minimum:
            return balance.mul_ratio(numerator, denominator)
    return balance


class VotingPowerCalculator:
    """將代幣餘額依投票策略換算為投票權重。"""

    @returns_result(GovernanceError, exception_map={TypeError: ValidationError})
    def compute_voting_power(
        self, balance: TokenAmount, strategy: VotingStrategy | str
    ) -> Result[TokenAmount, GovernanceError]:
        """Voting power of ``balance`` under ``strategy``.

        - simple: 權重等於餘額
        - quadratic: 代幣數量的平方根（以相同精度表示，向下取整）
        - weighted: 依整數代幣持有量分級加權（×2、×1.5、×1.2）
        """
        return Ok(power_of(balance, parse_strategy(strategy)))

    @returns_result(GovernanceError, exception_map={TypeError: ValidationError})
    def resolve_voting_power(
        self,
        address: str,
        balances: Mapping[str, TokenAmount],
        delegations: Mapping[str, str] | None = None,
        strategy: VotingStrategy | str = VotingStrategy.SIMPLE,
    ) -> Result[TokenAmount, GovernanceError]:
        """Total power an address controls once delegations are applied.

        每筆餘額只計入一個地址：有委託則計入受託人，否則計入持有人；
        委託給自己視同未委託，委託不會遞移。
        大小寫不同的同一地址餘額合併計算。
        """
        parsed = parse_strategy(strategy)
        target = normalize_address(address)
        owners: dict[str, TokenAmount] = {}
        for owner, amount in balances.items():
            key = normalize_address(owner)
            owners[key] = owners[key] + amount if key in owners else amount
        delegated: dict[str, str] = {}
        for owner, delegatee in (delegations or {}).items():
            key, to = normalize_address(owner), normalize_address(delegatee)
            if not to or delegated.setdefault(key, to) != to:
                return Err(
                    GovernanceValidationError(
                        "委託對象地址不可為空，且同一地址只能委託一個對象。",
                        error_code=GovernanceErrorCode.GOV_VALIDATION_INVALID_DELEGATION,
                        context={"address": address, "delegator": key},
                    )
                )

        contributing = [
            amount
            for owner, amount in owners.items()
            if delegated.get(owner, owner) == target
        ]
        if not contributing:
            return Ok(TokenAmount.zero(self._decimals_of(balances)))

        decimals = contributing[0].decimals
        power = sum_amounts((power_of(amount, parsed) for amount in contributing), decimals)
        LOGGER.debug(
            "governance.voting_power.resolved",
            address=target,
            strategy=parsed.value,
            contributors=len(contributing),
            power=power,
        )
        return Ok(power)

    @staticmethod
    def _decimals_of(balances: Mapping[str, TokenAmount]) -> int:
        for amount in balances.values():
            return amount.decimals
        return get_settings().decimals


__all__ = [
    "WEIGHTED_TIERS",
    "VotingPowerCalculator",
    "parse_strategy",
    "power_of",
]
