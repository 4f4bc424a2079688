"""Wallet-secret redaction shared by error contexts and log events."""

from __future__ import annotations

from typing import Any, Mapping

REDACTED = "[REDACTED]"

# 比對時忽略大小寫，且以「包含」判定（如 owner_private_key）
SENSITIVE_KEY_PARTS: frozenset[str] = frozenset(
    {
        "private_key",
        "privatekey",
        "mnemonic",
        "seed_phrase",
        "keystore",
        "password",
        "secret",
        "api_key",
        "apikey",
        "authorization",
    }
)


def is_sensitive_key(key: object) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact(value: Any, key: object = "") -> Any:
    """Return ``value`` with every secret-bearing entry replaced by ``REDACTED``.

    Mappings and lists/tuples are walked recursively; list items inherit the
    key of the list they belong to.
    """
    if isinstance(value, Mapping):
        return {k: redact(v, k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item, key) for item in value]
    if key and is_sensitive_key(key):
        return REDACTED
    return value


def redact_mapping(mapping: Mapping[str, Any] | None) -> dict[str, Any]:
    if not mapping:
        return {}
    return {key: redact(value, key) for key, value in mapping.items()}


__all__ = ["REDACTED", "SENSITIVE_KEY_PARTS", "is_sensitive_key", "redact", "redact_mapping"]
