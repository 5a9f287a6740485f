"""
Currency metadata and conversion routes.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from splitsettle.api.dependencies import get_currency_service
from splitsettle.schemas.currency import (
    ConversionRequest, ConversionResponse, CurrencyDetail,
    ExchangeRatesResponse, SupportedCurrenciesResponse
)
from splitsettle.services.currency_service import CurrencyService

router = APIRouter(prefix="/currencies", tags=["currencies"])


@router.get("/rates", response_model=ExchangeRatesResponse)
async def get_exchange_rates(
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """Get the full rate table relative to the reference currency."""
    return currency_service.exchange_rates()


@router.get("/supported", response_model=SupportedCurrenciesResponse)
async def get_supported_currencies(
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """List supported currencies."""
    currencies = currency_service.list_supported()
    return {"count": len(currencies), "currencies": currencies}


@router.post("/convert", response_model=ConversionResponse)
async def convert_currency(
    request: ConversionRequest,
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """Convert an amount between two supported currencies."""
    converted = currency_service.convert(request.amount, request.from_currency, request.to_currency)
    return {
        "original": {"amount": request.amount, "currency": request.from_currency.upper()},
        "converted": {"amount": converted, "currency": request.to_currency.upper()},
        "rate": converted / request.amount,
        "formatted": currency_service.format_amount(converted, request.to_currency),
        "timestamp": datetime.now(timezone.utc),
    }


@router.get("/{code}", response_model=CurrencyDetail)
async def get_currency_details(
    code: str,
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """Get details for one currency."""
    return currency_service.details(code)
