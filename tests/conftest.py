from __future__ import annotations

from collections.abc import Iterator

import pytest
from faker import Faker

from tokenomics_core import reset_default_services
from tokenomics_core.config.settings import get_governance_settings, get_settings
from tokenomics_core.infra.result import reset_error_metrics


@pytest.fixture
def faker() -> Faker:
    """Provide a Faker instance with Chinese and English locales for test data generation."""
    return Faker(["zh_TW", "en_US"])


@pytest.fixture
def wallet_address(faker: Faker) -> str:
    """A random checksum-style (mixed case) wallet address."""
    raw = faker.hexify(text="^" * 40)
    return "0x" + "".join(c.upper() if i % 3 == 0 else c for i, c in enumerate(raw))


@pytest.fixture(autouse=True)
def _fresh_settings_and_metrics() -> Iterator[None]:
    """Clear cached settings, default services and error counters around each test."""
    get_settings.cache_clear()
    get_governance_settings.cache_clear()
    reset_default_services()
    reset_error_metrics()
    yield
    get_settings.cache_clear()
    get_governance_settings.cache_clear()
    reset_default_services()
