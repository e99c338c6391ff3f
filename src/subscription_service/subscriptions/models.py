"""
Subscription models.

Covers the subscription entity, its status values, the append-only state
change record and the creation request.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field, field_validator, model_validator

from subscription_service.catalog.models import Product
from subscription_service.domain import BaseModel, utcnow
from subscription_service.vouchers.models import Voucher


class SubscriptionStatus(str, Enum):
    """Subscription status values. CANCELLED is terminal."""

    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class Subscription(BaseModel):
    """A user's subscription to one term of a product."""

    subscription_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    product_id: UUID
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE

    # Term
    start_date: datetime
    end_date: datetime
    trial_end_date: datetime | None = None

    # Pricing
    voucher_id: UUID | None = None
    original_price: Decimal = Field(ge=0)
    discounted_price: Decimal | None = Field(None, ge=0)
    tax_amount: Decimal = Field(ge=0)
    total_amount: Decimal = Field(ge=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Optimistic concurrency token, bumped by the repository on every write
    version: int = 1

    # Resolved relations for responses; never persisted
    product: Product | None = Field(None, exclude=True)
    voucher: Voucher | None = Field(None, exclude=True)

    @model_validator(mode="after")
    def check_term(self) -> "Subscription":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.trial_end_date is not None and self.start_date != self.trial_end_date:
            raise ValueError("start_date must equal trial_end_date when a trial is set")
        return self

    @property
    def is_cancelled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELLED

    @property
    def effective_price(self) -> Decimal:
        if self.discounted_price is None:
            return self.original_price
        return self.discounted_price

    def is_in_trial(self, now: datetime | None = None) -> bool:
        """Whether the trial window is still running."""
        if self.trial_end_date is None:
            return False
        return (now or utcnow()) < self.trial_end_date


class SubscriptionStateChange(BaseModel):
    """Immutable record of a single status transition."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    change_id: UUID = Field(default_factory=uuid4)
    subscription_id: UUID
    previous_state: SubscriptionStatus | None = Field(
        None, description="None for the record written at creation"
    )
    new_state: SubscriptionStatus
    changed_at: datetime = Field(default_factory=utcnow)
    reason: str


class SubscriptionCreateRequest(PydanticBaseModel):
    """Input for creating a subscription."""

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    product_id: UUID
    voucher_code: str | None = None
    with_trial: bool = False

    @field_validator("user_id", "product_id")
    @classmethod
    def validate_not_nil(cls, v: UUID) -> UUID:
        if v.int == 0:
            raise ValueError("must not be empty")
        return v

    @field_validator("voucher_code")
    @classmethod
    def normalize_voucher_code(cls, v: str | None) -> str | None:
        return v.upper() if v else None
