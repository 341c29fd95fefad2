from pydantic import BaseModel, ConfigDict


class TwelveDataQuote(BaseModel):
    """Decoded body of the Twelve Data `quote` endpoint, success or error."""

    model_config = ConfigDict(extra="ignore")

    symbol: str | None = None
    name: str | None = None
    close: str | None = None
    previous_close: str | None = None
    change: str | None = None
    percent_change: str | None = None
    timestamp: int | None = None

    status: str | None = None
    message: str | None = None
    code: int | None = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def price(self) -> float | None:
        # an error body never carries a usable price
        if self.is_error or self.close is None:
            return None
        try:
            return float(self.close)
        except ValueError:
            return None
