"""Service layer: vesting, distribution, token sale, voting power and proposal evaluation.

將常用子模組提升到套件層級，
以符合 `__all__` 並通過型別檢查器的名稱存在性檢查。
"""

# 將子模組匯入為屬性，確保於套件命名空間可見
from . import distribution_errors as distribution_errors  # noqa: F401
from . import distribution_service as distribution_service  # noqa: F401
from . import governance_errors as governance_errors  # noqa: F401
from . import proposal_registry as proposal_registry  # noqa: F401
from . import proposal_service as proposal_service  # noqa: F401
from . import sale_service as sale_service  # noqa: F401
from . import vesting_service as vesting_service  # noqa: F401
from . import voting_power_service as voting_power_service  # noqa: F401

__all__ = [
    "distribution_errors",
    "distribution_service",
    "governance_errors",
    "proposal_registry",
    "proposal_service",
    "sale_service",
    "vesting_service",
    "voting_power_service",
]
