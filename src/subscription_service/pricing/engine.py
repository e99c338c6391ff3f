"""
Subscription pricing.

Derives original price, discounted price, tax and total for one term of a
product. Pure functions over Decimal; no I/O.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from subscription_service.money_utils import MoneyHandler, get_money_handler
from subscription_service.vouchers.models import DiscountType, Voucher

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class PricingResult(BaseModel):
    """Price breakdown for a single subscription term."""

    model_config = ConfigDict(frozen=True)

    original_price: Decimal = Field(ge=0)
    discounted_price: Decimal | None = Field(None, ge=0)
    tax_amount: Decimal = Field(ge=0)
    total_amount: Decimal = Field(ge=0)

    @property
    def effective_price(self) -> Decimal:
        """Price the tax is computed from."""
        if self.discounted_price is None:
            return self.original_price
        return self.discounted_price

    @property
    def discount_amount(self) -> Decimal:
        return self.original_price - self.effective_price

    def quantize(self, handler: MoneyHandler | None = None) -> "PricingResult":
        """
        Round to currency precision for persistence.

        Components are rounded half away from zero and the total is rebuilt
        from the rounded components, so total == effective price + tax holds
        exactly on the stored values.
        """
        handler = handler or get_money_handler()
        original = handler.round_amount(self.original_price)
        discounted = (
            handler.round_amount(self.discounted_price)
            if self.discounted_price is not None
            else None
        )
        tax = handler.round_amount(self.tax_amount)
        base = original if discounted is None else discounted
        return PricingResult(
            original_price=original,
            discounted_price=discounted,
            tax_amount=tax,
            total_amount=base + tax,
        )

    def to_dict(self, handler: MoneyHandler | None = None) -> dict[str, Any]:
        handler = handler or get_money_handler()
        return {
            "original_price": str(self.original_price),
            "discounted_price": (
                str(self.discounted_price) if self.discounted_price is not None else None
            ),
            "tax_amount": str(self.tax_amount),
            "total_amount": str(self.total_amount),
            "currency": handler.currency.code,
            "formatted_total": handler.format_amount(self.total_amount),
        }


def apply_discount(price: Decimal, discount_type: DiscountType, discount_value: Decimal) -> Decimal:
    """Apply a fixed or percentage discount, clamping at zero."""
    if discount_type == DiscountType.FIXED:
        discounted = price - discount_value
    else:
        discounted = price - price * discount_value / HUNDRED

    return max(discounted, ZERO)


def compute_pricing(
    base_price: Decimal, tax_rate: Decimal, voucher: Voucher | None = None
) -> PricingResult:
    """
    Compute the price breakdown for one term.

    Tax is charged on the discounted price when a voucher applies.
    """
    if voucher is None:
        tax_amount = base_price * tax_rate
        return PricingResult(
            original_price=base_price,
            tax_amount=tax_amount,
            total_amount=base_price + tax_amount,
        )

    discounted_price = apply_discount(base_price, voucher.discount_type, voucher.discount_value)
    tax_amount = discounted_price * tax_rate
    return PricingResult(
        original_price=base_price,
        discounted_price=discounted_price,
        tax_amount=tax_amount,
        total_amount=discounted_price + tax_amount,
    )
