"""
Database tables.

Numeric precision and scale match the limits the domain models validate:
prices and discount values take two decimal places, tax rates four.
Subscription amounts are rounded to currency precision before they are written.
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from subscription_service.db import Base, TimestampMixin


class ProductTable(Base, TimestampMixin):
    """SQLAlchemy table for products."""

    __tablename__ = "products"

    product_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class VoucherTable(Base, TimestampMixin):
    """SQLAlchemy table for vouchers."""

    __tablename__ = "vouchers"

    voucher_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)  # fixed, percentage
    discount_value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    product_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("products.product_id", ondelete="CASCADE"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_vouchers_product", "product_id"),)


class SubscriptionTable(Base, TimestampMixin):
    """SQLAlchemy table for subscriptions."""

    __tablename__ = "subscriptions"

    subscription_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    product_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("products.product_id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # active, paused, cancelled

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    trial_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    voucher_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("vouchers.voucher_id", ondelete="SET NULL"), nullable=True
    )
    original_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    discounted_price: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_subscriptions_user", "user_id"),
        Index("ix_subscriptions_status", "status"),
    )


class SubscriptionStateChangeTable(Base):
    """SQLAlchemy table for subscription state changes (audit trail)."""

    __tablename__ = "subscription_state_changes"

    change_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    subscription_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"), nullable=False
    )
    previous_state: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_state: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    # subscription version produced by the change; orders records sharing a timestamp
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_state_changes_subscription", "subscription_id"),
        Index("ix_state_changes_changed_at", "changed_at"),
    )


__all__ = [
    "ProductTable",
    "VoucherTable",
    "SubscriptionTable",
    "SubscriptionStateChangeTable",
]
