from datetime import date, datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def normalize_symbol(value: str) -> str:
    return str(value).strip().upper()


def round_quantity(value: float) -> float:
    return round(value * 10000) / 10000


class HoldingRequest(BaseModel):
    symbol: str
    quantity: float
    purchase_price: float
    purchase_date: date | None = None

    @field_validator("symbol")
    @classmethod
    def clean_symbol(cls, value: str) -> str:
        symbol = normalize_symbol(value)
        if not symbol:
            raise ValueError("symbol must not be empty")
        return symbol

    @field_validator("quantity", "purchase_price")
    @classmethod
    def must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class Holding(BaseModel):
    """A position the user owns. Only `current_price` and `last_updated` are touched by price refreshes."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    symbol: str
    quantity: float
    purchase_price: float
    purchase_date: date | None = None
    current_price: float | None = None
    last_updated: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("symbol")
    @classmethod
    def clean_symbol(cls, value: str) -> str:
        return normalize_symbol(value)

    @field_validator("quantity")
    @classmethod
    def clean_quantity(cls, value: float) -> float:
        return round_quantity(value)

    @classmethod
    def from_request(cls, req: HoldingRequest) -> "Holding":
        return cls(
            symbol=req.symbol,
            quantity=req.quantity,
            purchase_price=req.purchase_price,
            purchase_date=req.purchase_date,
        )

    @property
    def display_symbol(self) -> str:
        return self.symbol.upper()

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.purchase_price

    @property
    def market_value(self) -> float | None:
        if self.current_price is None:
            return None
        return self.quantity * self.current_price

    @property
    def gain_loss(self) -> float | None:
        value = self.market_value
        if value is None:
            return None
        return value - self.cost_basis

    @property
    def gain_loss_percent(self) -> float | None:
        gain = self.gain_loss
        if gain is None or self.cost_basis <= 0:
            return None
        return gain / self.cost_basis * 100

    def view(self) -> dict:
        return {
            **self.model_dump(mode="json"),
            "cost_basis": self.cost_basis,
            "market_value": self.market_value,
            "gain_loss": self.gain_loss,
            "gain_loss_percent": self.gain_loss_percent,
        }
