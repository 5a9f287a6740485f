"""
Domain errors raised by the settlement engine.

Services raise these instead of ``HTTPException`` so the engine stays usable
outside a request. ``splitsettle.main`` renders every ``SettlementError`` as
``{"detail": ...}`` with the class's status code.

    SettlementError
    +-- NotFound              404
    |   +-- CurrencyNotFound  404
    +-- Forbidden             403
    +-- InvalidState          409
    +-- UnsupportedCurrency   400
"""
from typing import Optional


class SettlementError(Exception):
    """Base class for settlement engine errors."""
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(SettlementError):
    """A group, settlement or currency does not exist."""
    status_code = 404


class CurrencyNotFound(NotFound):
    """Requested currency details for a code outside the rate table."""

    def __init__(self, code: str):
        super().__init__(f"Currency not found: {code}")
        self.code = code


class Forbidden(SettlementError):
    """The actor lacks the relationship the operation requires."""
    status_code = 403


class InvalidState(SettlementError):
    """A settlement transition is not allowed from its current status."""
    status_code = 409

    def __init__(self, detail: str, current_status: Optional[str] = None):
        super().__init__(detail)
        self.current_status = current_status


class UnsupportedCurrency(SettlementError):
    """A conversion referenced a code outside the rate table."""
    status_code = 400

    def __init__(self, code: str):
        super().__init__(f"Unsupported currency: {code}")
        self.code = code
