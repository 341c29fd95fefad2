from __future__ import annotations

import time

from pydantic import BaseModel

from portfolio_snapshot.schemas.holding import normalize_symbol

DEFAULT_TTL_SEC = 60.0


class CacheEntry(BaseModel):
    symbol: str
    price: float
    fetched_at: float


class PriceCache:
    """Symbol -> last fetched price. Expired rows are treated as misses, never evicted."""

    def __init__(self, ttl_sec: float = DEFAULT_TTL_SEC) -> None:
        self.ttl_sec = ttl_sec
        self._rows: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, symbol: str) -> CacheEntry | None:
        return self._rows.get(normalize_symbol(symbol))

    def lookup(self, symbol: str, now: float | None = None) -> float | None:
        ref = time.time() if now is None else now
        row = self.get(symbol)
        if row is None or ref - row.fetched_at >= self.ttl_sec:
            self.misses += 1
            return None
        self.hits += 1
        return row.price

    def store(self, symbol: str, price: float, now: float | None = None) -> None:
        key = normalize_symbol(symbol)
        fetched_at = time.time() if now is None else now
        self._rows[key] = CacheEntry(symbol=key, price=float(price), fetched_at=fetched_at)

    def clear(self) -> None:
        self._rows.clear()

    def metrics(self, now: float | None = None) -> dict:
        ref = time.time() if now is None else now
        expired = sum(1 for r in self._rows.values() if ref - r.fetched_at >= self.ttl_sec)
        return {
            "cached_symbols": len(self._rows),
            "expired_symbols": expired,
            "cache_hits": self.hits,
            "cache_misses": self.misses,
            "ttl_sec": self.ttl_sec,
        }
