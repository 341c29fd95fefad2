from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel

from portfolio_snapshot.schemas.holding import Holding


class PortfolioSummary(BaseModel):
    holdings_count: int
    total_cost_basis: float
    total_market_value: float | None = None
    total_gain_loss: float | None = None
    total_gain_loss_percent: float | None = None


def summarize(holdings: Sequence[Holding]) -> PortfolioSummary:
    """Aggregate figures; market totals stay empty until every holding has a price."""
    total_cost_basis = sum(h.cost_basis for h in holdings)

    values = [h.market_value for h in holdings if h.market_value is not None]
    total_market_value = None
    if holdings and len(values) == len(holdings):
        total_market_value = sum(values)

    total_gain_loss = None
    if total_market_value is not None:
        total_gain_loss = total_market_value - total_cost_basis

    total_gain_loss_percent = None
    if total_gain_loss is not None and total_cost_basis > 0:
        total_gain_loss_percent = total_gain_loss / total_cost_basis * 100

    return PortfolioSummary(
        holdings_count=len(holdings),
        total_cost_basis=total_cost_basis,
        total_market_value=total_market_value,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=total_gain_loss_percent,
    )
