"""
Currency conversion service.

Every amount is converted through a single reference currency: a rate is the
value of one unit of a currency expressed in the reference currency, so the
reference currency itself always has rate 1. Rates come from an injected
``RateProvider``; the default ``StaticRateProvider`` serves the table from
settings and never touches the network.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from splitsettle.core.config import settings
from splitsettle.core.exceptions import CurrencyNotFound, UnsupportedCurrency
from splitsettle.core.utils import round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyRate:
    """A supported currency and its rate to the reference currency."""
    code: str
    name: str
    symbol: str
    rate: Decimal
    last_updated: Optional[date] = None


class RateProvider(ABC):
    """Source of exchange rates keyed by currency code."""

    @abstractmethod
    def rates(self) -> Mapping[str, CurrencyRate]:
        """Current rate table; must include the reference currency at rate 1."""


class StaticRateProvider(RateProvider):
    """Fixed, in-process rate table. Immutable for the provider's lifetime."""

    def __init__(self, table: Mapping[str, Any], last_updated: Optional[date] = None):
        parsed = {}
        for code, info in table.items():
            code = code.upper()
            if isinstance(info, CurrencyRate):
                parsed[code] = info
                continue
            rate = to_decimal(info["rate"])
            if rate <= 0:
                raise ValueError(f"Invalid exchange rate for {code}: {rate}")
            parsed[code] = CurrencyRate(
                code=code,
                name=info.get("name", code),
                symbol=info.get("symbol", code),
                rate=rate,
                last_updated=last_updated,
            )
        self._rates = MappingProxyType(parsed)
        logger.debug(f"Loaded {len(parsed)} static currency rates")

    @classmethod
    def from_settings(cls) -> "StaticRateProvider":
        return cls(settings.CURRENCY_RATES, last_updated=settings.RATES_LAST_UPDATED)

    def rates(self) -> Mapping[str, CurrencyRate]:
        return self._rates


class CurrencyService:
    """Converts amounts between supported currencies via the reference currency."""

    def __init__(self, provider: RateProvider, reference: Optional[str] = None):
        self.provider = provider
        self.reference = (reference or settings.REFERENCE_CURRENCY).upper()
        rate = provider.rates().get(self.reference)
        if rate is None:
            raise ValueError(f"Reference currency {self.reference} is missing from the rate table")
        if rate.rate != 1:
            raise ValueError(f"Reference currency {self.reference} must have rate 1, got {rate.rate}")

    def _rate(self, code: str) -> CurrencyRate:
        rate = self.provider.rates().get(code.upper())
        if rate is None:
            raise UnsupportedCurrency(code.upper())
        return rate

    def is_supported(self, code: str) -> bool:
        return code.upper() in self.provider.rates()

    def normalize(self, amount: Any, code: str) -> Decimal:
        """Unrounded value of ``amount`` in the reference currency.

        Used for balance accumulation so that rounding is applied once, when
        results are presented, instead of on every expense.
        """
        return to_decimal(amount) * self._rate(code).rate

    def convert(self, amount: Any, from_code: str, to_code: str) -> Decimal:
        """
        Convert ``amount`` from one currency to another.

        Both codes must be supported. The result is rounded to cents with
        ROUND_HALF_UP, including the same-currency case.
        """
        source = self._rate(from_code)
        target = self._rate(to_code)
        amount = to_decimal(amount)

        if source.code == target.code:
            return round_money(amount)

        return round_money(amount * source.rate / target.rate)

    def to_reference(self, amount: Any, code: str) -> Decimal:
        return self.convert(amount, code, self.reference)

    def from_reference(self, amount: Any, code: str) -> Decimal:
        return self.convert(amount, self.reference, code)

    def list_supported(self) -> List[Dict[str, Any]]:
        return [
            {
                "code": rate.code,
                "name": rate.name,
                "symbol": rate.symbol,
                "rate_to_reference": rate.rate,
            }
            for rate in self.provider.rates().values()
        ]

    def details(self, code: str) -> Dict[str, Any]:
        rate = self.provider.rates().get(code.upper())
        if rate is None:
            raise CurrencyNotFound(code.upper())
        return {
            "code": rate.code,
            "name": rate.name,
            "symbol": rate.symbol,
            "rate_to_reference": rate.rate,
            "last_updated": rate.last_updated,
        }

    def exchange_rates(self) -> Dict[str, Any]:
        """Full rate table with its base currency and a fetch timestamp."""
        return {
            "base": self.reference,
            "rates": {code: self.details(code) for code in self.provider.rates()},
            "timestamp": datetime.now(timezone.utc),
        }

    def format_amount(self, amount: Any, code: str) -> str:
        """Render an amount with its currency symbol, e.g. ``€12.50``."""
        rate = self.provider.rates().get(code.upper())
        value = round_money(amount)
        if rate is None:
            return f"{value:.2f} {code.upper()}"
        return f"{rate.symbol}{value:.2f}"


def get_default_currency_service() -> CurrencyService:
    """Currency service over the configured static rate table."""
    return CurrencyService(StaticRateProvider.from_settings(), settings.REFERENCE_CURRENCY)
