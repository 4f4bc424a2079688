"""Governance specific error types."""

from __future__ import annotations

from enum import Enum
from typing import Any

from tokenomics_core.infra.result import (
    Error,
    NotFoundError,
    StateError,
    ValidationError,
)


class GovernanceErrorCode(str, Enum):
    """治理操作錯誤代碼。

    命名規則: GOV_<CATEGORY>_<DETAIL>
    - VALIDATION: 輸入驗證錯誤
    - STATE: 提案狀態不允許該操作
    - PROPOSAL: 提案查找相關錯誤
    """

    # 驗證錯誤
    GOV_VALIDATION_UNKNOWN_STRATEGY = "GOV_VALIDATION_UNKNOWN_STRATEGY"
    GOV_VALIDATION_INVALID_WINDOW = "GOV_VALIDATION_INVALID_WINDOW"
    GOV_VALIDATION_INVALID_PERCENT = "GOV_VALIDATION_INVALID_PERCENT"
    GOV_VALIDATION_BELOW_THRESHOLD = "GOV_VALIDATION_BELOW_THRESHOLD"
    GOV_VALIDATION_INVALID_DELEGATION = "GOV_VALIDATION_INVALID_DELEGATION"

    # 狀態錯誤
    GOV_STATE_NOT_ACTIVE = "GOV_STATE_NOT_ACTIVE"
    GOV_STATE_ALREADY_VOTED = "GOV_STATE_ALREADY_VOTED"
    GOV_STATE_NOT_SUCCEEDED = "GOV_STATE_NOT_SUCCEEDED"
    GOV_STATE_ALREADY_QUEUED = "GOV_STATE_ALREADY_QUEUED"
    GOV_STATE_NOT_QUEUED = "GOV_STATE_NOT_QUEUED"
    GOV_STATE_TIMELOCK_PENDING = "GOV_STATE_TIMELOCK_PENDING"
    GOV_STATE_TERMINAL = "GOV_STATE_TERMINAL"
    GOV_STATE_NOT_PROPOSER = "GOV_STATE_NOT_PROPOSER"

    # 提案錯誤
    GOV_PROPOSAL_NOT_FOUND = "GOV_PROPOSAL_NOT_FOUND"
    GOV_PROPOSAL_DUPLICATE_ID = "GOV_PROPOSAL_DUPLICATE_ID"

    # 通用錯誤
    GOV_UNKNOWN_ERROR = "GOV_UNKNOWN_ERROR"


class GovernanceError(Error):
    """治理操作的基礎錯誤類型。"""

    error_code: GovernanceErrorCode = GovernanceErrorCode.GOV_UNKNOWN_ERROR

    def __init__(
        self, message: str, *, error_code: GovernanceErrorCode | None = None, **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        if error_code is not None:
            self.error_code = error_code


class GovernanceValidationError(GovernanceError, ValidationError):
    """治理操作的輸入驗證錯誤。"""

    error_code = GovernanceErrorCode.GOV_VALIDATION_INVALID_PERCENT

    def __init__(
        self,
        message: str,
        *,
        error_code: GovernanceErrorCode = GovernanceErrorCode.GOV_VALIDATION_INVALID_PERCENT,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class UnknownVotingStrategyError(GovernanceValidationError):
    """當投票策略識別碼不在支援清單中時拋出。"""

    def __init__(self, message: str = "不支援的投票策略。", **kwargs: Any) -> None:
        super().__init__(
            message, error_code=GovernanceErrorCode.GOV_VALIDATION_UNKNOWN_STRATEGY, **kwargs
        )


class GovernanceStateError(GovernanceError, StateError):
    """提案目前狀態不允許此操作。"""

    error_code = GovernanceErrorCode.GOV_STATE_TERMINAL

    def __init__(
        self,
        message: str,
        *,
        error_code: GovernanceErrorCode = GovernanceErrorCode.GOV_STATE_TERMINAL,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class VotingNotAllowedError(GovernanceStateError):
    """當提案不在投票期間時拋出。"""

    def __init__(self, message: str = "提案目前不在投票期間。", **kwargs: Any) -> None:
        super().__init__(message, error_code=GovernanceErrorCode.GOV_STATE_NOT_ACTIVE, **kwargs)


class DuplicateVoteError(GovernanceStateError):
    """同一地址對同一提案重複投票時拋出。"""

    def __init__(self, message: str = "此地址已對該提案投票。", **kwargs: Any) -> None:
        super().__init__(
            message, error_code=GovernanceErrorCode.GOV_STATE_ALREADY_VOTED, **kwargs
        )


class InvalidProposalStatusError(GovernanceStateError):
    """當提案狀態對於排程或執行無效時拋出。"""

    def __init__(
        self,
        message: str = "提案狀態不允許此操作。",
        *,
        error_code: GovernanceErrorCode = GovernanceErrorCode.GOV_STATE_NOT_SUCCEEDED,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class TimelockNotElapsedError(GovernanceStateError):
    """排程中的提案尚未到達可執行時間。"""

    def __init__(
        self, message: str = "提案尚未到達可執行時間。", **kwargs: Any
    ) -> None:
        super().__init__(
            message, error_code=GovernanceErrorCode.GOV_STATE_TIMELOCK_PENDING, **kwargs
        )


class CancelNotAllowedError(GovernanceStateError):
    """非提案人撤案，或提案已進入終止狀態。"""

    def __init__(
        self,
        message: str = "不允許撤銷此提案。",
        *,
        error_code: GovernanceErrorCode = GovernanceErrorCode.GOV_STATE_TERMINAL,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class ProposalNotFoundError(GovernanceError, NotFoundError):
    """當找不到提案時拋出。"""

    error_code = GovernanceErrorCode.GOV_PROPOSAL_NOT_FOUND

    def __init__(self, message: str = "找不到指定的提案。", **kwargs: Any) -> None:
        super().__init__(message, error_code=GovernanceErrorCode.GOV_PROPOSAL_NOT_FOUND, **kwargs)


__all__ = [
    "GovernanceErrorCode",
    "GovernanceError",
    "GovernanceValidationError",
    "UnknownVotingStrategyError",
    "GovernanceStateError",
    "VotingNotAllowedError",
    "DuplicateVoteError",
    "InvalidProposalStatusError",
    "TimelockNotElapsedError",
    "CancelNotAllowedError",
    "ProposalNotFoundError",
]
