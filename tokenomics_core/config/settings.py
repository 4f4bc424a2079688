from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ETHEREUM_MAINNET = 1
ETHEREUM_SEPOLIA = 11155111

_KNOWN_STRATEGIES = ("simple", "quadratic", "weighted")


class TokenomicsSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TOKENOMICS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    decimals: int = Field(default=18, ge=0, le=36)
    lookahead_months: int = Field(default=6, ge=1)
    projection_months: int = Field(default=36, ge=1)
    log_level: str = Field(default="INFO")


class GovernanceSettings(BaseSettings):
    """Governor parameters; time values are seconds, percentages are whole percents."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENOMICS_GOVERNANCE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    quorum_percent: int = Field(default=4, gt=0, le=100)
    required_majority_percent: int = Field(default=51, gt=0, le=100)
    execution_delay_seconds: int = Field(default=172_800, ge=0)
    # Timelock grace period before a queued proposal goes stale.
    execution_window_seconds: int = Field(default=1_209_600, ge=0)
    proposal_threshold_tokens: int = Field(default=100_000, ge=0)
    voting_strategy: str = Field(default="simple")

    @field_validator("voting_strategy")
    @classmethod
    def validate_voting_strategy(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in _KNOWN_STRATEGIES:
            raise ValueError(
                f"voting_strategy must be one of {', '.join(_KNOWN_STRATEGIES)}; got {v!r}"
            )
        return value


# 各鏈的治理參數覆寫；未列出的鏈沿用預設值
CHAIN_GOVERNANCE_OVERRIDES: dict[int, dict[str, Any]] = {
    ETHEREUM_MAINNET: {
        "quorum_percent": 5,
        "proposal_threshold_tokens": 250_000,
    },
    ETHEREUM_SEPOLIA: {},
}


@lru_cache(maxsize=1)
def get_settings() -> TokenomicsSettings:
    return TokenomicsSettings()


@lru_cache(maxsize=8)
def get_governance_settings(chain_id: int | None = None) -> GovernanceSettings:
    overrides = CHAIN_GOVERNANCE_OVERRIDES.get(chain_id, {}) if chain_id is not None else {}
    return GovernanceSettings(**overrides)


__all__ = [
    "CHAIN_GOVERNANCE_OVERRIDES",
    "ETHEREUM_MAINNET",
    "ETHEREUM_SEPOLIA",
    "GovernanceSettings",
    "TokenomicsSettings",
    "get_governance_settings",
    "get_settings",
]
