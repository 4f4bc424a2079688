from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from functools import total_ordering
from typing import Iterable

from tokenomics_core.infra.result import TokenArithmeticError

__all__ = ["BPS_DENOMINATOR", "DEFAULT_DECIMALS", "TokenAmount", "sum_amounts"]

DEFAULT_DECIMALS = 18
BPS_DENOMINATOR = 10_000


def _reject_float(value: object, operation: str) -> None:
    if isinstance(value, float):
        raise TypeError(f"TokenAmount.{operation} does not accept float operands: {value!r}")


@total_ordering
@dataclass(slots=True, frozen=True)
class TokenAmount:
    """Non-negative token quantity in base units, scaled by ``10 ** decimals``.

    All arithmetic is exact integer arithmetic; every division floors.
    """

    raw: int
    decimals: int = DEFAULT_DECIMALS

    def __post_init__(self) -> None:
        if isinstance(self.raw, bool) or not isinstance(self.raw, int):
            _reject_float(self.raw, "__init__")
            raise TypeError(f"TokenAmount raw value must be int, got {type(self.raw).__name__}")
        if self.raw < 0:
            raise TokenArithmeticError(
                "Token amounts cannot be negative.",
                context={"raw": self.raw, "decimals": self.decimals},
            )
        if self.decimals < 0:
            raise TokenArithmeticError(
                "Decimals cannot be negative.", context={"decimals": self.decimals}
            )

    # --- construction ---

    @classmethod
    def zero(cls, decimals: int = DEFAULT_DECIMALS) -> "TokenAmount":
        return cls(0, decimals)

    @classmethod
    def from_tokens(
        cls, value: int | str | Decimal, decimals: int = DEFAULT_DECIMALS
    ) -> "TokenAmount":
        """Build an amount from a whole/fractional token figure, e.g. ``"1250.5"``."""
        _reject_float(value, "from_tokens")
        try:
            exact = Decimal(value) if not isinstance(value, Decimal) else value
        except InvalidOperation as exc:
            raise TokenArithmeticError(
                f"Cannot parse token amount {value!r}.", context={"value": str(value)}, cause=exc
            ) from exc
        if not exact.is_finite():
            raise TokenArithmeticError(
                f"Token amount must be finite, got {value!r}.", context={"value": str(value)}
            )
        with localcontext() as ctx:
            ctx.prec = 96
            scaled = exact.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise TokenArithmeticError(
                "Token amount has more fractional digits than the token supports.",
                context={"value": str(value), "decimals": decimals},
            )
        return cls(int(scaled), decimals)

    # --- properties ---

    @property
    def scale(self) -> int:
        return 10**self.decimals

    @property
    def whole_tokens(self) -> int:
        return self.raw // self.scale

    def to_decimal(self) -> Decimal:
        """Exact token figure, e.g. ``TokenAmount(15, 1).to_decimal() == Decimal("1.5")``."""
        with localcontext() as ctx:
            ctx.prec = 96
            return Decimal(self.raw).scaleb(-self.decimals)

    def is_zero(self) -> bool:
        return self.raw == 0

    def __bool__(self) -> bool:
        return self.raw != 0

    # --- arithmetic ---

    def _check_same_scale(self, other: "TokenAmount", operation: str) -> None:
        if not isinstance(other, TokenAmount):
            _reject_float(other, operation)
            raise TypeError(f"TokenAmount.{operation} expects a TokenAmount, got {type(other).__name__}")
        if other.decimals != self.decimals:
            raise TokenArithmeticError(
                "Cannot combine token amounts with different decimals.",
                context={"left": self.decimals, "right": other.decimals, "operation": operation},
            )

    def add(self, other: "TokenAmount") -> "TokenAmount":
        self._check_same_scale(other, "add")
        return TokenAmount(self.raw + other.raw, self.decimals)

    def sub(self, other: "TokenAmount") -> "TokenAmount":
        self._check_same_scale(other, "sub")
        if other.raw > self.raw:
            raise TokenArithmeticError(
                "Subtraction would produce a negative token amount.",
                context={"left": self.raw, "right": other.raw},
            )
        return TokenAmount(self.raw - other.raw, self.decimals)

    def mul_percent(self, bps: int) -> "TokenAmount":
        """``self * bps / 10000`` with floor division."""
        return self.mul_ratio(bps, BPS_DENOMINATOR)

    def mul_ratio(self, numerator: int, denominator: int) -> "TokenAmount":
        _reject_float(numerator, "mul_ratio")
        _reject_float(denominator, "mul_ratio")
        if denominator == 0:
            raise TokenArithmeticError("Division by zero.", context={"numerator": numerator})
        if numerator < 0 or denominator < 0:
            raise TokenArithmeticError(
                "Ratios applied to token amounts must be non-negative.",
                context={"numerator": numerator, "denominator": denominator},
            )
        return TokenAmount(self.raw * numerator // denominator, self.decimals)

    def div_floor(self, divisor: int) -> "TokenAmount":
        _reject_float(divisor, "div_floor")
        if divisor == 0:
            raise TokenArithmeticError("Division by zero.", context={"raw": self.raw})
        if divisor < 0:
            raise TokenArithmeticError(
                "Divisor must be positive.", context={"divisor": divisor}
            )
        return TokenAmount(self.raw // divisor, self.decimals)

    def isqrt(self) -> "TokenAmount":
        """Floor square root of the token quantity, at the same scale.

        sqrt(raw / scale) * scale == sqrt(raw * scale), so 1_000_000 tokens give 1000 tokens.
        """
        return TokenAmount(math.isqrt(self.raw * self.scale), self.decimals)

    def min(self, other: "TokenAmount") -> "TokenAmount":
        self._check_same_scale(other, "min")
        return self if self.raw <= other.raw else other

    # --- ratios against a total ---

    def percent_bps_of(self, total: "TokenAmount") -> int:
        self._check_same_scale(total, "percent_bps_of")
        if total.raw == 0:
            raise TokenArithmeticError("Division by zero: total is zero.", context={"raw": self.raw})
        return self.raw * BPS_DENOMINATOR // total.raw

    def percent_of(self, total: "TokenAmount") -> Decimal:
        """Percentage of ``total`` floored to basis-point precision (two decimals)."""
        return Decimal(self.percent_bps_of(total)) / Decimal(100)

    def whole_percent_of(self, total: "TokenAmount") -> int:
        self._check_same_scale(total, "whole_percent_of")
        if total.raw == 0:
            raise TokenArithmeticError("Division by zero: total is zero.", context={"raw": self.raw})
        return self.raw * 100 // total.raw

    # --- operators ---

    def __add__(self, other: "TokenAmount") -> "TokenAmount":
        return self.add(other)

    def __sub__(self, other: "TokenAmount") -> "TokenAmount":
        return self.sub(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TokenAmount):
            return NotImplemented
        self._check_same_scale(other, "__lt__")
        return self.raw < other.raw

    def __str__(self) -> str:
        if self.decimals == 0:
            return str(self.raw)
        whole, frac = divmod(self.raw, self.scale)
        frac_text = str(frac).rjust(self.decimals, "0").rstrip("0")
        return f"{whole}.{frac_text}" if frac_text else str(whole)


def sum_amounts(amounts: Iterable[TokenAmount], decimals: int = DEFAULT_DECIMALS) -> TokenAmount:
    total = TokenAmount.zero(decimals)
    for amount in amounts:
        total = total.add(amount)
    return total
