"""Project profitability and the red/amber/green health indicator."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

HEALTHY_MARGIN = 25.0
WATCH_MARGIN = 15.0


@dataclass(frozen=True)
class RagStatus:
    status: str
    label: str


@dataclass(frozen=True)
class Profitability:
    contract_value: float
    actual_cost: float
    profit: float
    margin_percent: float
    rag: RagStatus


def rag_status(margin_percent: float) -> RagStatus:
    if margin_percent > HEALTHY_MARGIN:
        return RagStatus("green", "Healthy")
    if margin_percent >= WATCH_MARGIN:
        return RagStatus("amber", "Watch")
    return RagStatus("red", "At Risk")


def calculate_profitability(
    contract_value: Optional[Decimal | float], actual_cost: Optional[Decimal | float]
) -> Profitability:
    value = float(contract_value or 0)
    cost = float(actual_cost or 0)
    profit = value - cost
    margin = round(profit / value * 100, 2) if value else 0.0
    return Profitability(
        contract_value=value,
        actual_cost=cost,
        profit=round(profit, 2),
        margin_percent=margin,
        rag=rag_status(margin),
    )
