"""計算核心的 Result 型別與錯誤分類。

所有公開操作回傳 ``Ok(value)`` 或 ``Err(error)``，不以例外作為控制流程：

- ``Error`` 攜帶訊息、context 與 cause，四個分類子型別對應呼叫端的處理方式
  （算術、驗證、狀態、查無資料）。
- ``returns_result`` 將服務方法包成 Result：領域錯誤原樣透傳，其他例外依
  ``exception_map`` 轉成對應分類，並記錄錯誤統計與結構化日誌。
"""

from __future__ import annotations

import builtins
import functools
from collections import Counter
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Mapping,
    ParamSpec,
    TypeVar,
    Union,
    cast,
)

import structlog

from tokenomics_core.infra.redaction import redact_mapping

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
P = ParamSpec("P")

_TOTAL_KEY = "__total__"
_ERROR_COUNTERS: Counter[str] = Counter()


# --- 錯誤分類 ---


class Error(Exception):
    """Result 錯誤的共同基底。

    領域子類別另有 ``error_code`` 類別屬性（``GOV_*`` / ``DIST_*``）。
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.cause: BaseException | None = cause

    @property
    def code(self) -> str | None:
        error_code = getattr(self, "error_code", None)
        if error_code is None:
            return None
        return str(getattr(error_code, "value", error_code))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
            "cause": repr(self.cause) if self.cause is not None else None,
        }

    def __str__(self) -> str:
        return self.message

    def log_safe_context(self) -> dict[str, Any]:
        return redact_mapping(self.context)


class TokenArithmeticError(Error, builtins.ArithmeticError):
    """代幣數量運算錯誤：除以零、結果為負、精度不一致、總供給量為零。"""


class ValidationError(Error):
    """輸入參數不合法，呼叫端修正輸入後可重試。"""


class StateError(Error):
    """目前狀態不允許此操作（非投票期投票、重複投票、時間鎖未到）。"""


class NotFoundError(Error):
    """找不到指定的分配類別或提案。"""


# --- Ok / Err ---


@dataclass(frozen=True, slots=True)
class Ok(Generic[T, E]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> E:
        raise RuntimeError(f"Called unwrap_err() on Ok value: {self.value!r}")

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        return Ok(fn(self.value))

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Err(Generic[T, E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        raise RuntimeError(f"Called unwrap() on Err value: {self.error!r}")

    def unwrap_err(self) -> E:
        return self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        return Err(self.error)

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return Err(self.error)


Result = Union[Ok[T, E], Err[T, E]]


def collect(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """All values in order, or the first ``Err`` (later results are not evaluated)."""
    values: list[T] = []
    for item in results:
        if isinstance(item, Err):
            return Err(item.error)
        values.append(item.value)
    return Ok(values)


# --- 錯誤統計 ---


def _record_error(error: Error) -> None:
    _ERROR_COUNTERS[type(error).__name__] += 1
    if error.code is not None:
        _ERROR_COUNTERS[error.code] += 1
    _ERROR_COUNTERS[_TOTAL_KEY] += 1


def get_error_metrics() -> dict[str, int]:
    """失敗次數，依錯誤型別名稱與錯誤代碼分別累計。"""
    return dict(_ERROR_COUNTERS)


def reset_error_metrics() -> None:
    _ERROR_COUNTERS.clear()


# --- 裝飾器 ---


def _convert(
    exc: Exception,
    error_type: type[Error],
    exception_map: Mapping[type[Exception], type[Error]] | None,
) -> Error:
    if isinstance(exc, Error):
        return exc
    for exc_type, mapped in (exception_map or {}).items():
        if isinstance(exc, exc_type):
            return mapped(str(exc), cause=exc)
    return error_type(str(exc), cause=exc)


def returns_result(
    error_type: type[Error] = Error,
    *,
    exception_map: Mapping[type[Exception], type[Error]] | None = None,
) -> Callable[[Callable[P, Any]], Callable[P, Result[Any, Error]]]:
    """Wrap a service method so it always returns a ``Result``.

    A returned ``Ok``/``Err`` passes through and any other value is wrapped in
    ``Ok``. A raised ``Error`` keeps its type and context. Other exceptions
    become ``exception_map[type]`` (first match) or ``error_type``, with the
    original exception kept as ``cause``.
    """

    def decorator(func: Callable[P, Any]) -> Callable[P, Result[Any, Error]]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[Any, Error]:
            try:
                value = func(*args, **kwargs)
            except Exception as exc:
                error = _convert(exc, error_type, exception_map)
                _record_error(error)
                LOGGER.error(
                    "result.returns_result.error",
                    function=func.__qualname__,
                    error_type=type(error).__name__,
                    error_code=error.code,
                    error=error.message,
                    context=error.log_safe_context(),
                )
                return Err(error)
            if isinstance(value, (Ok, Err)):
                return cast(Result[Any, Error], value)
            return Ok(value)

        return wrapper

    return decorator


__all__ = [
    "Err",
    "Error",
    "NotFoundError",
    "Ok",
    "Result",
    "StateError",
    "TokenArithmeticError",
    "ValidationError",
    "collect",
    "get_error_metrics",
    "reset_error_metrics",
    "returns_result",
]
