"""
Pydantic schemas for currency metadata and conversion.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal


class CurrencyInfo(BaseModel):
    """A supported currency."""
    code: str
    name: str
    symbol: str
    rate_to_reference: Decimal  # 1 unit of this currency in the reference currency


class CurrencyDetail(CurrencyInfo):
    """Currency with the date its rate was last updated."""
    last_updated: Optional[date] = None


class SupportedCurrenciesResponse(BaseModel):
    count: int
    currencies: List[CurrencyInfo]


class ExchangeRatesResponse(BaseModel):
    """Full rate table."""
    base: str
    rates: Dict[str, CurrencyDetail]
    timestamp: datetime


class ConversionRequest(BaseModel):
    """Schema for a conversion request."""
    amount: Decimal = Field(gt=0)
    from_currency: str = Field(alias="from", min_length=3, max_length=3)
    to_currency: str = Field(alias="to", min_length=3, max_length=3)


class MoneyAmount(BaseModel):
    amount: Decimal
    currency: str


class ConversionResponse(BaseModel):
    """Schema for a conversion result."""
    original: MoneyAmount
    converted: MoneyAmount
    rate: Decimal  # converted / original
    formatted: str
    timestamp: datetime
