"""
Product catalog models.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field, field_validator

from subscription_service.domain import BaseModel, utcnow


class Product(BaseModel):
    """A subscribable product with a single fixed term."""

    product_id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    price: Decimal = Field(
        ge=0, max_digits=15, decimal_places=2, description="Base price for one term"
    )
    duration_months: int = Field(gt=0, description="Length of one term in months")
    tax_rate: Decimal = Field(
        ge=0,
        max_digits=7,
        decimal_places=4,
        description="Tax rate as a decimal fraction, e.g. 0.20",
    )
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class _ProductFields(PydanticBaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    description: str = ""
    price: Decimal = Field(ge=0, max_digits=15, decimal_places=2)
    duration_months: int = Field(gt=0)
    tax_rate: Decimal = Field(ge=0, max_digits=7, decimal_places=4)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v


class ProductCreateRequest(_ProductFields):
    """Request model for creating products."""


class ProductUpdateRequest(_ProductFields):
    """Request model for replacing a product's attributes."""
