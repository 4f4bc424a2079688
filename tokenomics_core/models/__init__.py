"""不可變資料模型：代幣數量、分配、歸屬排程、治理提案與代幣銷售。"""

from __future__ import annotations

from . import allocation_models, governance_models, sale_models, token_amount

__all__ = [
    "allocation_models",
    "governance_models",
    "sale_models",
    "token_amount",
]
