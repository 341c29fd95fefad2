from __future__ import annotations


class QuoteError(Exception):
    """Base class for every classified quote failure."""

    code = "QUOTE_ERROR"
    transient = False
    default_message = "Quote request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def _payload(self) -> tuple:
        return (self.message,)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._payload() == other._payload()

    def __hash__(self) -> int:
        return hash((type(self), self._payload()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "transient": self.transient,
        }


class InvalidRequestError(QuoteError):
    code = "INVALID_REQUEST"
    default_message = "Invalid request URL"


class TransientQuoteError(QuoteError):
    transient = True


class PermanentQuoteError(QuoteError):
    pass


class NetworkError(TransientQuoteError):
    code = "NETWORK_ERROR"

    def __init__(self, detail: str = "connection failed") -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class RateLimitedError(TransientQuoteError):
    code = "RATE_LIMITED"
    default_message = "API rate limit exceeded. Please wait a moment."


class DecodingError(PermanentQuoteError):
    code = "DECODING_ERROR"
    default_message = "Failed to parse response"


class InvalidSymbolError(PermanentQuoteError):
    code = "INVALID_SYMBOL"

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Invalid symbol: {symbol}")

    def _payload(self) -> tuple:
        return (self.symbol,)

    def __repr__(self) -> str:
        return f"InvalidSymbolError({self.symbol!r})"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "symbol": self.symbol}


class ApiError(PermanentQuoteError):
    code = "API_ERROR"
    default_message = "Unknown API error"


class NoDataError(PermanentQuoteError):
    code = "NO_DATA"
    default_message = "No price data available"


class RefreshInProgressError(Exception):
    """Raised when a refresh is requested while another batch is running."""

    def __init__(self) -> None:
        super().__init__("REFRESH_IN_PROGRESS")
