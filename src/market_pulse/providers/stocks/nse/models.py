"""Models for NSE India provider (API params and response rows)."""
from pydantic import BaseModel, ConfigDict, Field


class NseIndexParams(BaseModel):
    """Params for /api/equity-stockIndices."""

    index: str = "NIFTY 50"


class NseQuoteParams(BaseModel):
    """Params for /api/quote-equity."""

    symbol: str


class NsePriceInfo(BaseModel):
    """priceInfo block of a quote-equity response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_price: float | None = Field(default=None, alias="lastPrice")
    p_change: float | None = Field(default=None, alias="pChange")


class NseIndexRow(BaseModel):
    """One row of an equity-stockIndices response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: str
    last_price: float | None = Field(default=None, alias="lastPrice")
    p_change: float | None = Field(default=None, alias="pChange")
