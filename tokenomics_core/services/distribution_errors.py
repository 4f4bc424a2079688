"""Distribution and vesting specific error types."""

from __future__ import annotations

from enum import Enum
from typing import Any

from tokenomics_core.infra.result import (
    Error,
    NotFoundError,
    StateError,
    ValidationError,
)


class DistributionErrorCode(str, Enum):
    """代幣分配與歸屬錯誤代碼。

    命名規則: DIST_<CATEGORY>_<DETAIL>
    """

    # 分配驗證
    DIST_VALIDATION_PERCENT_SUM = "DIST_VALIDATION_PERCENT_SUM"
    DIST_VALIDATION_PERCENT_PRECISION = "DIST_VALIDATION_PERCENT_PRECISION"
    DIST_VALIDATION_TGE_RANGE = "DIST_VALIDATION_TGE_RANGE"
    DIST_VALIDATION_DECIMALS_MISMATCH = "DIST_VALIDATION_DECIMALS_MISMATCH"
    DIST_VALIDATION_EMPTY = "DIST_VALIDATION_EMPTY"
    DIST_VALIDATION_NEGATIVE_DURATION = "DIST_VALIDATION_NEGATIVE_DURATION"
    DIST_VALIDATION_CLIFF_EXCEEDS_DURATION = "DIST_VALIDATION_CLIFF_EXCEEDS_DURATION"
    DIST_VALIDATION_INVALID_INTERVAL = "DIST_VALIDATION_INVALID_INTERVAL"
    DIST_VALIDATION_INVALID_WINDOW = "DIST_VALIDATION_INVALID_WINDOW"
    DIST_VALIDATION_OVER_RELEASED = "DIST_VALIDATION_OVER_RELEASED"

    # 代幣銷售
    DIST_VALIDATION_STAGE_MISMATCH = "DIST_VALIDATION_STAGE_MISMATCH"
    DIST_VALIDATION_STAGE_OVERSUBSCRIBED = "DIST_VALIDATION_STAGE_OVERSUBSCRIBED"
    DIST_VALIDATION_INVALID_PRICE = "DIST_VALIDATION_INVALID_PRICE"

    # 歸屬狀態
    DIST_STATE_NOTHING_RELEASABLE = "DIST_STATE_NOTHING_RELEASABLE"
    DIST_STATE_ALREADY_REVOKED = "DIST_STATE_ALREADY_REVOKED"

    # 查找
    DIST_ALLOCATION_NOT_FOUND = "DIST_ALLOCATION_NOT_FOUND"

    DIST_UNKNOWN_ERROR = "DIST_UNKNOWN_ERROR"


class DistributionError(Error):
    """分配計算的基礎錯誤類型。"""

    error_code: DistributionErrorCode = DistributionErrorCode.DIST_UNKNOWN_ERROR

    def __init__(
        self, message: str, *, error_code: DistributionErrorCode | None = None, **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        if error_code is not None:
            self.error_code = error_code


class AllocationValidationError(DistributionError, ValidationError):
    """分配或歸屬參數不合法。"""

    error_code = DistributionErrorCode.DIST_VALIDATION_PERCENT_SUM

    def __init__(
        self,
        message: str,
        *,
        error_code: DistributionErrorCode = DistributionErrorCode.DIST_VALIDATION_PERCENT_SUM,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class VestingStateError(DistributionError, StateError):
    """歸屬排程目前狀態不允許此操作（無可釋放數量、重複撤銷）。"""

    error_code = DistributionErrorCode.DIST_STATE_NOTHING_RELEASABLE

    def __init__(
        self,
        message: str,
        *,
        error_code: DistributionErrorCode = DistributionErrorCode.DIST_STATE_NOTHING_RELEASABLE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class AllocationNotFoundError(DistributionError, NotFoundError):
    """找不到指定名稱的分配類別。"""

    error_code = DistributionErrorCode.DIST_ALLOCATION_NOT_FOUND

    def __init__(self, message: str = "找不到指定的分配類別。", **kwargs: Any) -> None:
        super().__init__(
            message, error_code=DistributionErrorCode.DIST_ALLOCATION_NOT_FOUND, **kwargs
        )


__all__ = [
    "DistributionErrorCode",
    "DistributionError",
    "AllocationValidationError",
    "VestingStateError",
    "AllocationNotFoundError",
]
