"""Discount vouchers: models, eligibility rules and management."""

from subscription_service.vouchers.eligibility import (
    check_voucher_eligibility,
    is_expired,
    is_voucher_eligible,
)
from subscription_service.vouchers.models import (
    DiscountType,
    Voucher,
    VoucherCreateRequest,
    VoucherUpdateRequest,
)
from subscription_service.vouchers.service import VoucherService

__all__ = [
    "DiscountType",
    "Voucher",
    "VoucherCreateRequest",
    "VoucherUpdateRequest",
    "VoucherService",
    "check_voucher_eligibility",
    "is_expired",
    "is_voucher_eligible",
]
