"""
Voucher models.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel as PydanticBaseModel
from pydantic import (
    AwareDatetime,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from subscription_service.domain import BaseModel, utcnow

MAX_PERCENTAGE = Decimal("100")


class DiscountType(str, Enum):
    """How a voucher's discount value is applied."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class Voucher(BaseModel):
    """A discount code, optionally scoped to one product."""

    voucher_id: UUID = Field(default_factory=uuid4)
    code: str
    discount_type: DiscountType
    discount_value: Decimal = Field(ge=0, max_digits=15, decimal_places=2)
    product_id: UUID | None = Field(None, description="Product scope; None applies to any product")
    is_active: bool = True
    expires_at: AwareDatetime
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_percentage_bound(self) -> "Voucher":
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > MAX_PERCENTAGE:
            raise ValueError("percentage cannot be greater than 100")
        return self

    def is_scoped_to(self, product_id: UUID) -> bool:
        """Whether the voucher may be used with the given product."""
        return self.product_id is None or self.product_id == product_id


class _VoucherFields(PydanticBaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str
    discount_type: DiscountType
    discount_value: Decimal = Field(ge=0, max_digits=15, decimal_places=2)
    product_id: UUID | None = None
    is_active: bool = True
    expires_at: AwareDatetime

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v.upper()

    @field_validator("discount_value")
    @classmethod
    def validate_percentage(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        if info.data.get("discount_type") == DiscountType.PERCENTAGE and v > MAX_PERCENTAGE:
            raise ValueError("percentage cannot be greater than 100")
        return v


class VoucherCreateRequest(_VoucherFields):
    """Request model for creating vouchers."""


class VoucherUpdateRequest(_VoucherFields):
    """Request model for replacing a voucher's attributes."""
