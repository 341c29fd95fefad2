from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from portfolio_snapshot.errors import (
    ApiError,
    DecodingError,
    InvalidRequestError,
    InvalidSymbolError,
    NetworkError,
    NoDataError,
    QuoteError,
    RateLimitedError,
)
from portfolio_snapshot.schemas.holding import normalize_symbol
from portfolio_snapshot.schemas.quote import TwelveDataQuote

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKER = "not found"


class TwelveDataClient:
    """Twelve Data quote client: one GET per symbol, every failure classified."""

    DEFAULT_BASE_URL = "https://api.twelvedata.com"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.requests = 0

    async def __aenter__(self) -> "TwelveDataClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def build_url(self, symbol: str) -> httpx.URL:
        if not symbol or not self.api_key:
            raise InvalidRequestError()
        try:
            url = httpx.URL(
                f"{self.base_url}/quote",
                params={"symbol": symbol, "apikey": self.api_key},
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise InvalidRequestError() from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidRequestError()
        return url

    @staticmethod
    def _decode(response: httpx.Response) -> TwelveDataQuote:
        try:
            return TwelveDataQuote.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise DecodingError() from exc

    @staticmethod
    def _classify_error(quote: TwelveDataQuote, symbol: str) -> QuoteError:
        if quote.code == 429:
            return RateLimitedError()
        message = quote.message or ""
        if _NOT_FOUND_MARKER in message.lower():
            return InvalidSymbolError(symbol)
        return ApiError(message or None)

    async def fetch(self, symbol: str) -> float:
        clean_symbol = normalize_symbol(symbol)
        url = self.build_url(clean_symbol)

        self.requests += 1
        try:
            response = await self.client.get(url, timeout=self.timeout)
        except httpx.RequestError as exc:
            logger.warning(
                "[QUOTE][network_error] symbol=%s error=%s", clean_symbol, type(exc).__name__
            )
            raise NetworkError(str(exc) or type(exc).__name__) from exc

        if response.status_code == 429:
            raise RateLimitedError()

        quote = self._decode(response)
        if quote.is_error:
            raise self._classify_error(quote, clean_symbol)

        price = quote.price
        if price is None:
            raise NoDataError()
        return price


class DemoQuoteClient:
    """Offline stand-in used when no API key is provisioned."""

    def __init__(self, price: float = 100.0) -> None:
        self.price = price

    async def fetch(self, symbol: str) -> float:
        if not normalize_symbol(symbol):
            raise InvalidRequestError()
        return self.price

    async def aclose(self) -> None:
        return None
