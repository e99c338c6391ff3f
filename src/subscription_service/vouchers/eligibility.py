"""
Voucher eligibility rules.

Checks run in a fixed precedence so the reported failure is stable:
inactive, then expired, then product scope.
"""

from datetime import datetime
from uuid import UUID

from subscription_service.domain import utcnow
from subscription_service.exceptions import (
    VoucherError,
    VoucherExpiredError,
    VoucherInactiveError,
    VoucherNotApplicableError,
)
from subscription_service.vouchers.models import Voucher


def is_expired(voucher: Voucher, now: datetime | None = None) -> bool:
    """A voucher expires the instant after its expiry timestamp."""
    now = now or utcnow()
    return now > voucher.expires_at


def check_voucher_eligibility(
    voucher: Voucher, product_id: UUID, now: datetime | None = None
) -> None:
    """
    Validate that a voucher can be applied to a product.

    Raises:
        VoucherInactiveError: voucher has been deactivated
        VoucherExpiredError: current time is after the expiry timestamp
        VoucherNotApplicableError: voucher is scoped to a different product
    """
    if not voucher.is_active:
        raise VoucherInactiveError(code=voucher.code)

    if is_expired(voucher, now):
        raise VoucherExpiredError(code=voucher.code)

    if not voucher.is_scoped_to(product_id):
        raise VoucherNotApplicableError(code=voucher.code, product_id=product_id)


def is_voucher_eligible(voucher: Voucher, product_id: UUID, now: datetime | None = None) -> bool:
    try:
        check_voucher_eligibility(voucher, product_id, now)
    except VoucherError:
        return False
    return True
