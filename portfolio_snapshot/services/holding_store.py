from __future__ import annotations

import threading

from portfolio_snapshot.schemas.holding import Holding, HoldingRequest, round_quantity


class HoldingStore:
    """Process-local holding registry, ordered by symbol like the portfolio list."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, Holding] = {}

    def add(self, req: HoldingRequest) -> Holding:
        holding = Holding.from_request(req)
        with self._lock:
            self._rows[holding.id] = holding
        return holding

    def get(self, holding_id: str) -> Holding | None:
        return self._rows.get(holding_id)

    def update(self, holding_id: str, req: HoldingRequest) -> Holding | None:
        with self._lock:
            holding = self._rows.get(holding_id)
            if holding is None:
                return None
            if holding.symbol != req.symbol:
                # a new ticker invalidates the price carried over from the old one
                holding.current_price = None
                holding.last_updated = None
            holding.symbol = req.symbol
            holding.quantity = round_quantity(req.quantity)
            holding.purchase_price = req.purchase_price
            holding.purchase_date = req.purchase_date
            return holding

    def delete(self, holding_id: str) -> bool:
        with self._lock:
            return self._rows.pop(holding_id, None) is not None

    def list_all(self) -> list[Holding]:
        return sorted(self._rows.values(), key=lambda h: (h.symbol, h.created_at))

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
