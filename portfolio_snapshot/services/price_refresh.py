from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable, Protocol

from pydantic import BaseModel, ConfigDict

from portfolio_snapshot.errors import NetworkError, QuoteError, RefreshInProgressError
from portfolio_snapshot.schemas.holding import normalize_symbol
from portfolio_snapshot.services.price_cache import PriceCache

logger = logging.getLogger(__name__)

DEFAULT_PACE_SEC = 0.5


class PriceableHolding(Protocol):
    symbol: str
    current_price: float | None
    last_updated: datetime | None


class QuoteFetcher(Protocol):
    async def fetch(self, symbol: str) -> float: ...


class RefreshState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    is_loading: bool = False
    last_error: QuoteError | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def view(self) -> dict:
        return {
            "is_loading": self.is_loading,
            "last_error": self.last_error.to_dict() if self.last_error else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class RefreshResult(BaseModel):
    target_count: int = 0
    updated_count: int = 0
    cache_hits: int = 0
    fetched_count: int = 0
    failed_symbols: list[str] = []


StateListener = Callable[[RefreshState], Any]


class PriceRefreshService:
    """Sequential, paced price refresh over a batch of holdings.

    Cache hits skip the network but still stamp `last_updated`. A failing
    symbol keeps its previous price and only the latest failure of a batch is
    kept in `last_error`. Only one batch may run at a time; a concurrent
    `refresh` call raises `RefreshInProgressError`.
    """

    def __init__(
        self,
        *,
        quote_client: QuoteFetcher,
        price_cache: PriceCache | None = None,
        pace_sec: float = DEFAULT_PACE_SEC,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.quote_client = quote_client
        self.price_cache = price_cache if price_cache is not None else PriceCache()
        self.pace_sec = pace_sec
        self.sleep_fn = sleep_fn
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = RefreshState()
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []

        self.refreshes = 0
        self.rejected_refreshes = 0
        self.fetches = 0
        self.fetch_failures = 0
        self.last_result = RefreshResult()

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def last_error(self) -> QuoteError | None:
        return self._state.last_error

    def state(self) -> RefreshState:
        return self._state.model_copy()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit_state(self) -> None:
        snapshot = self.state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[PRICE][listener_error] listener=%r", listener)

    def clear_cache(self) -> None:
        self.price_cache.clear()
        logger.info("[PRICE][cache_clear]")

    async def _fetch(self, symbol: str) -> float:
        self.fetches += 1
        try:
            return await self.quote_client.fetch(symbol)
        except QuoteError:
            raise
        except Exception as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc

    async def refresh(self, holdings: Iterable[PriceableHolding]) -> RefreshResult:
        if self._lock.locked():
            self.rejected_refreshes += 1
            logger.warning("[PRICE][refresh_rejected] reason=in_progress")
            raise RefreshInProgressError()

        async with self._lock:
            batch = list(holdings)
            result = RefreshResult(target_count=len(batch))

            self._state.is_loading = True
            self._state.last_error = None
            self._state.started_at = self.clock()
            self.refreshes += 1
            self._emit_state()
            logger.info("[PRICE][refresh_start] holdings=%d", len(batch))

            try:
                for index, holding in enumerate(batch):
                    await self._refresh_one(holding, result)
                    if index < len(batch) - 1:
                        await self.sleep_fn(self.pace_sec)
            finally:
                self._state.is_loading = False
                self._state.finished_at = self.clock()
                self.last_result = result
                self._emit_state()
                logger.info(
                    "[PRICE][refresh_done] target=%d updated=%d cache_hits=%d failed=%d",
                    result.target_count,
                    result.updated_count,
                    result.cache_hits,
                    len(result.failed_symbols),
                )

            return result

    async def _refresh_one(self, holding: PriceableHolding, result: RefreshResult) -> None:
        symbol = holding.symbol

        cached = self.price_cache.lookup(symbol)
        if cached is not None:
            holding.current_price = cached
            holding.last_updated = self.clock()
            result.cache_hits += 1
            result.updated_count += 1
            logger.debug("[PRICE][cache_hit] symbol=%s", symbol)
            return

        try:
            price = await self._fetch(symbol)
        except QuoteError as exc:
            self.fetch_failures += 1
            result.failed_symbols.append(symbol)
            self._state.last_error = exc
            self._emit_state()
            logger.warning(
                "[PRICE][fetch_error] symbol=%s code=%s transient=%s message=%s",
                symbol,
                exc.code,
                exc.transient,
                exc.message,
            )
            return

        self.price_cache.store(symbol, price)
        result.fetched_count += 1
        if normalize_symbol(holding.symbol) != normalize_symbol(symbol):
            # symbol edited while the fetch was in flight; the price belongs to the old ticker
            logger.info("[PRICE][symbol_changed] fetched=%s current=%s", symbol, holding.symbol)
            return

        holding.current_price = price
        holding.last_updated = self.clock()
        result.updated_count += 1
        logger.debug("[PRICE][fetched] symbol=%s price=%s", symbol, price)

    def metrics(self) -> dict:
        return {
            "refreshes": self.refreshes,
            "rejected_refreshes": self.rejected_refreshes,
            "fetches": self.fetches,
            "fetch_failures": self.fetch_failures,
            "is_loading": self._state.is_loading,
            "batch_target_count": self.last_result.target_count,
            "batch_updated_count": self.last_result.updated_count,
            "batch_cache_hits": self.last_result.cache_hits,
            "batch_failed_symbols": list(self.last_result.failed_symbols),
        }
