"""
Voucher management service.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from subscription_service.domain import build_request, utcnow
from subscription_service.exceptions import FieldError, ValidationFailedError
from subscription_service.repositories.base import ProductRepository, VoucherRepository
from subscription_service.vouchers.eligibility import check_voucher_eligibility
from subscription_service.vouchers.models import (
    Voucher,
    VoucherCreateRequest,
    VoucherUpdateRequest,
)

logger = structlog.get_logger(__name__)


class VoucherService:
    """Manage discount vouchers and check them against products."""

    def __init__(
        self,
        vouchers: VoucherRepository,
        products: ProductRepository,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._vouchers = vouchers
        self._products = products
        self._clock = clock or utcnow

    async def _ensure_product(self, product_id: UUID | None) -> None:
        # raises ProductNotFoundError for a dangling scope
        if product_id is not None:
            await self._products.get_by_id(product_id)

    async def create_voucher(self, request: VoucherCreateRequest | dict[str, Any]) -> Voucher:
        """
        Create a voucher.

        Raises:
            ValidationFailedError: invalid input fields
            ProductNotFoundError: scoping product does not exist
            DuplicateVoucherError: code already in use
        """
        if isinstance(request, dict):
            request = build_request(VoucherCreateRequest, **request)

        now = self._clock()
        if request.expires_at <= now:
            raise ValidationFailedError([FieldError("expires_at", "must be in the future")])

        await self._ensure_product(request.product_id)

        voucher = Voucher(**request.model_dump(), created_at=now, updated_at=now)
        await self._vouchers.create(voucher)

        logger.info(
            "Voucher created",
            voucher_id=str(voucher.voucher_id),
            code=voucher.code,
            discount_type=voucher.discount_type.value,
            product_id=str(voucher.product_id) if voucher.product_id else None,
        )
        return voucher

    async def get_voucher(self, voucher_id: UUID) -> Voucher:
        return await self._vouchers.get_by_id(voucher_id)

    async def get_voucher_by_code(self, code: str) -> Voucher:
        """Look up a voucher by code, case-insensitively."""
        return await self._vouchers.get_by_code(code.strip().upper())

    async def list_vouchers_for_product(self, product_id: UUID) -> list[Voucher]:
        return await self._vouchers.list_by_product(product_id)

    async def list_active_vouchers(self) -> list[Voucher]:
        return await self._vouchers.list_active()

    async def update_voucher(
        self, voucher_id: UUID, request: VoucherUpdateRequest | dict[str, Any]
    ) -> Voucher:
        """Replace a voucher's attributes."""
        if isinstance(request, dict):
            request = build_request(VoucherUpdateRequest, **request)

        voucher = await self._vouchers.get_by_id(voucher_id)
        await self._ensure_product(request.product_id)

        # validate the combined state before touching the stored copy
        updated = Voucher(
            **{**voucher.model_dump(), **request.model_dump(), "updated_at": self._clock()}
        )
        await self._vouchers.update(updated)

        logger.info("Voucher updated", voucher_id=str(voucher_id), code=updated.code)
        return updated

    async def delete_voucher(self, voucher_id: UUID) -> None:
        await self._vouchers.delete(voucher_id)
        logger.info("Voucher deleted", voucher_id=str(voucher_id))

    async def validate_voucher(self, code: str, product_id: UUID) -> Voucher:
        """
        Fetch a voucher and check it can be applied to a product now.

        Raises:
            VoucherNotFoundError: no voucher with this code
            VoucherInactiveError, VoucherExpiredError, VoucherNotApplicableError
        """
        voucher = await self.get_voucher_by_code(code)
        check_voucher_eligibility(voucher, product_id, self._clock())
        return voucher
