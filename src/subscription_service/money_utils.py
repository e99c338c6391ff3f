"""
Money utilities using py-moneyed and Babel.

Amounts are kept as Decimal throughout; rounding to currency precision is
done once, when values are persisted.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from babel import Locale
from babel.core import UnknownLocaleError
from babel.numbers import format_currency, get_currency_precision
from moneyed import Currency, Money, get_currency
from moneyed.classes import CurrencyDoesNotExist

from subscription_service.settings import get_settings

DEFAULT_LOCALE = "en_US"


class MoneyHandler:
    """Central handler for money operations in a single currency."""

    def __init__(self, currency: str = "USD", locale: str = DEFAULT_LOCALE) -> None:
        self.currency = self._validate_currency(currency)
        self.locale = self._validate_locale(locale)

    def _validate_currency(self, currency_code: str) -> Currency:
        """Validate and return Currency object."""
        try:
            return get_currency(currency_code.upper())
        except CurrencyDoesNotExist:
            raise ValueError(f"Invalid currency code: {currency_code}")

    def _validate_locale(self, locale_code: str) -> str:
        """Validate locale code."""
        try:
            Locale.parse(locale_code)
            return locale_code
        except (UnknownLocaleError, ValueError):
            return DEFAULT_LOCALE

    @property
    def precision(self) -> int:
        """Decimal places of the configured currency."""
        return get_currency_precision(self.currency.code)

    def to_decimal(self, amount: int | float | Decimal | str) -> Decimal:
        """Convert to Decimal without passing through binary floating point."""
        if isinstance(amount, Decimal):
            return amount
        return Decimal(str(amount))

    def round_amount(self, amount: Decimal) -> Decimal:
        """Round half away from zero to the currency precision."""
        return amount.quantize(Decimal(1).scaleb(-self.precision), rounding=ROUND_HALF_UP)

    def create_money(self, amount: int | float | Decimal | str) -> Money:
        """Create Money object in the configured currency."""
        return Money(amount=self.to_decimal(amount), currency=self.currency)

    def format_money(self, money: Money, locale: str | None = None, **kwargs: Any) -> str:
        """Format Money object with locale-aware formatting."""
        validated_locale = self._validate_locale(locale or self.locale)
        try:
            return format_currency(
                number=money.amount, currency=money.currency.code, locale=validated_locale, **kwargs
            )
        except (TypeError, ValueError):
            return f"{money.currency.code} {money.amount}"

    def format_amount(self, amount: Decimal, locale: str | None = None) -> str:
        """Format a bare amount in the configured currency."""
        return self.format_money(self.create_money(amount), locale)

    def to_dict(self, amount: Decimal) -> dict[str, Any]:
        """Convert an amount to a dictionary for serialization."""
        return {
            "amount": str(amount),
            "currency": self.currency.code,
            "formatted": self.format_amount(amount),
        }


def get_money_handler() -> MoneyHandler:
    """Money handler for the configured billing currency and locale."""
    billing = get_settings().billing
    return MoneyHandler(currency=billing.currency, locale=billing.locale)


def round_amount(amount: Decimal) -> Decimal:
    """Round an amount with the configured handler."""
    return get_money_handler().round_amount(amount)


def format_amount(amount: Decimal, locale: str | None = None) -> str:
    """Format an amount with the configured handler."""
    return get_money_handler().format_amount(amount, locale)


__all__ = [
    "MoneyHandler",
    "get_money_handler",
    "round_amount",
    "format_amount",
]
