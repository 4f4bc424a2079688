"""Result 模組單元測試。

此測試套件涵蓋：
- Ok 和 Err 的基本操作與組合器
- 錯誤分類與錯誤代碼
- 錯誤 context 的錢包機密遮罩
- 錯誤統計與 returns_result 裝飾器
"""

from __future__ import annotations

import pytest

from tokenomics_core.infra.redaction import REDACTED, is_sensitive_key, redact
from tokenomics_core.infra.result import (
    Err,
    Error,
    NotFoundError,
    Ok,
    Result,
    StateError,
    TokenArithmeticError,
    ValidationError,
    collect,
    get_error_metrics,
    reset_error_metrics,
    returns_result,
)
from tokenomics_core.services.governance_errors import DuplicateVoteError


@pytest.mark.unit
class TestOkErr:
    def test_ok(self) -> None:
        result: Result[int, Error] = Ok(42)

        assert result.is_ok() is True
        assert result.is_err() is False
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42

    def test_ok_unwrap_err_raises(self) -> None:
        with pytest.raises(RuntimeError, match="unwrap_err"):
            Ok(1).unwrap_err()

    def test_err(self) -> None:
        error = StateError("already voted")
        result: Result[int, Error] = Err(error)

        assert result.is_err() is True
        assert result.unwrap_err() is error
        assert result.unwrap_or(99) == 99
        with pytest.raises(RuntimeError, match="already voted"):
            result.unwrap()

    def test_map_and_then(self) -> None:
        assert Ok(10).map(lambda x: x * 2) == Ok(20)
        assert Ok(5).and_then(lambda x: Ok(x * 3)) == Ok(15)

        error = ValidationError("bad")
        assert Err(error).map(lambda x: x * 2).unwrap_err() is error
        assert Err(error).and_then(lambda x: Ok(x)).unwrap_err() is error

    def test_results_are_immutable(self) -> None:
        with pytest.raises(AttributeError):
            Ok(1).value = 2  # type: ignore[misc]

    def test_collect_all_ok(self) -> None:
        assert collect([Ok(1), Ok(2), Ok(3)]) == Ok([1, 2, 3])

    def test_collect_stops_at_first_err(self) -> None:
        first = StateError("first")
        evaluated: list[int] = []

        def results():  # type: ignore[no-untyped-def]
            for index, item in enumerate([Ok(1), Err(first), Ok(3)]):
                evaluated.append(index)
                yield item

        assert collect(results()).unwrap_err() is first
        assert evaluated == [0, 1]


@pytest.mark.unit
class TestErrors:
    def test_to_dict(self) -> None:
        error = Error("wrapped", context={"proposal_id": "p-1"}, cause=ValueError("root"))

        data = error.to_dict()

        assert data["type"] == "Error"
        assert data["code"] is None
        assert data["context"] == {"proposal_id": "p-1"}
        assert "root" in data["cause"]

    def test_domain_error_exposes_code(self) -> None:
        assert DuplicateVoteError().code == "GOV_STATE_ALREADY_VOTED"

    def test_token_arithmetic_error_is_arithmetic_error(self) -> None:
        error = TokenArithmeticError("division by zero")

        assert isinstance(error, Error)
        assert isinstance(error, ArithmeticError)

    @pytest.mark.parametrize("error_type", [ValidationError, StateError, NotFoundError])
    def test_categories_subclass_error(self, error_type: type[Error]) -> None:
        assert issubclass(error_type, Error)


@pytest.mark.unit
class TestRedaction:
    def test_private_key_is_redacted(self) -> None:
        error = Error("x", context={"owner_private_key": "0xdeadbeef", "address": "0xabc"})

        safe = error.log_safe_context()

        assert safe["owner_private_key"] == REDACTED
        assert safe["address"] == "0xabc"
        assert error.context["owner_private_key"] == "0xdeadbeef"

    def test_nested_values_are_redacted(self) -> None:
        value = {"wallet": {"Mnemonic": "seed words", "chain_id": 1}, "keys": [{"secret": "s"}]}

        safe = redact(value)

        assert safe["wallet"] == {"Mnemonic": REDACTED, "chain_id": 1}
        assert safe["keys"] == [{"secret": REDACTED}]

    @pytest.mark.parametrize("key", ["API_KEY", "Authorization", "seed_phrase", "keystore"])
    def test_sensitive_keys(self, key: str) -> None:
        assert is_sensitive_key(key) is True

    def test_empty_context(self) -> None:
        assert Error("x").log_safe_context() == {}


@pytest.mark.unit
class TestReturnsResult:
    def test_wraps_plain_value(self) -> None:
        @returns_result()
        def compute() -> int:
            return 7

        assert compute() == Ok(7)

    def test_passes_through_result(self) -> None:
        @returns_result()
        def compute() -> Result[int, Error]:
            return Err(StateError("already voted"))

        assert isinstance(compute().unwrap_err(), StateError)

    def test_domain_error_keeps_type_and_context(self) -> None:
        @returns_result(ValidationError)
        def compute() -> int:
            raise TokenArithmeticError("zero supply", context={"supply": 0})

        error = compute().unwrap_err()

        assert isinstance(error, TokenArithmeticError)
        assert error.context == {"supply": 0}

    def test_exception_map_selects_category(self) -> None:
        @returns_result(Error, exception_map={KeyError: NotFoundError})
        def lookup() -> int:
            raise KeyError("missing")

        error = lookup().unwrap_err()

        assert isinstance(error, NotFoundError)
        assert isinstance(error.cause, KeyError)

    def test_unmapped_exception_uses_default_type(self) -> None:
        @returns_result(ValidationError, exception_map={KeyError: NotFoundError})
        def parse() -> int:
            raise RuntimeError("bad input")

        assert isinstance(parse().unwrap_err(), ValidationError)

    def test_failures_are_counted_by_type_and_code(self) -> None:
        reset_error_metrics()

        @returns_result(StateError)
        def fail() -> int:
            raise RuntimeError("x")

        @returns_result()
        def vote_twice() -> int:
            raise DuplicateVoteError()

        fail()
        vote_twice()
        vote_twice()

        metrics = get_error_metrics()
        assert metrics["StateError"] == 1
        assert metrics["DuplicateVoteError"] == 2
        assert metrics["GOV_STATE_ALREADY_VOTED"] == 2
        assert metrics["__total__"] == 3

    def test_returned_err_is_not_counted(self) -> None:
        reset_error_metrics()

        @returns_result()
        def compute() -> Result[int, Error]:
            return Err(StateError("expected"))

        compute()

        assert get_error_metrics() == {}

    def test_preserves_function_name(self) -> None:
        @returns_result()
        def compute_schedule() -> int:
            return 1

        assert compute_schedule.__name__ == "compute_schedule"
