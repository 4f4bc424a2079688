"""JSON Lines 日誌設定、錢包機密遮罩與金額輸出測試。"""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest
import structlog

from tokenomics_core.infra.logging.config import configure_logging, is_configured
from tokenomics_core.models.token_amount import TokenAmount

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f8c5c58b3b9c4f5e1a"
MNEMONIC = "legal winner thank year wave sausage worth useful legal winner thank yellow"


def _lines(capsys: pytest.CaptureFixture[str]) -> list[dict[str, Any]]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.strip()]


@pytest.mark.unit
def test_emits_one_json_object_per_event(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="INFO")

    structlog.get_logger("tokenomics.test").info("vesting.schedule.computed", months=12)

    (payload,) = _lines(capsys)
    assert payload["event"] == payload["msg"] == "vesting.schedule.computed"
    assert payload["level"] == "info"
    assert payload["months"] == 12
    assert payload["ts"].endswith("Z") or "+00:00" in payload["ts"]
    assert is_configured() is True


@pytest.mark.unit
def test_wallet_secrets_never_reach_output(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="INFO")

    structlog.get_logger("tokenomics.test").info(
        "governance.vote.cast",
        voter="0xAbC0000000000000000000000000000000000001",
        signer_private_key=PRIVATE_KEY,
        wallet={"mnemonic": MNEMONIC, "chain_id": 1},
        signers=[{"password": "hunter2"}],
    )

    out = capsys.readouterr().out
    payload = json.loads(out)
    assert PRIVATE_KEY not in out
    assert MNEMONIC not in out
    assert payload["signer_private_key"] == "[REDACTED]"
    assert payload["wallet"] == {"mnemonic": "[REDACTED]", "chain_id": 1}
    assert payload["signers"] == [{"password": "[REDACTED]"}]
    assert payload["voter"] == "0xAbC0000000000000000000000000000000000001"


@pytest.mark.unit
def test_token_amounts_render_as_exact_decimal_strings(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO")

    structlog.get_logger("tokenomics.test").info(
        "distribution.stats.computed",
        locked_tokens=TokenAmount(1_500_000_000_000_000_001),
        releases=[TokenAmount(25, 0)],
    )

    (payload,) = _lines(capsys)
    assert payload["locked_tokens"] == "1.500000000000000001"
    assert payload["releases"] == ["25"]


@pytest.mark.unit
def test_events_below_level_are_dropped(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="warning")
    logger = structlog.get_logger("tokenomics.test")

    logger.debug("vesting.schedule.computed")
    logger.warning("vesting.schedule.stranded")

    assert [p["event"] for p in _lines(capsys)] == ["vesting.schedule.stranded"]


@pytest.mark.unit
def test_level_defaults_to_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENOMICS_LOG_LEVEL", "debug")

    configure_logging()

    assert logging.getLogger().level == logging.DEBUG


@pytest.mark.unit
def test_unknown_level_falls_back_to_info() -> None:
    configure_logging(level="chatty")

    assert logging.getLogger().level == logging.INFO
