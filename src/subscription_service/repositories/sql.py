"""
SQLAlchemy repositories.

Each operation runs in its own session and transaction. Subscription writes
use the ``version`` column as an optimistic lock: the UPDATE only matches the
row when the stored version equals the caller's, and the state change INSERT
commits in the same transaction.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from subscription_service.catalog.models import Product
from subscription_service.exceptions import (
    ConcurrentModificationError,
    DuplicateVoucherError,
    ProductNotFoundError,
    SubscriptionNotFoundError,
    VoucherNotFoundError,
)
from subscription_service.models import (
    ProductTable,
    SubscriptionStateChangeTable,
    SubscriptionTable,
    VoucherTable,
)
from subscription_service.repositories.base import (
    ProductRepository,
    SubscriptionRepository,
    VoucherRepository,
)
from subscription_service.subscriptions.models import (
    Subscription,
    SubscriptionStateChange,
    SubscriptionStatus,
)
from subscription_service.vouchers.models import DiscountType, Voucher

logger = structlog.get_logger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; every stored timestamp is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ==========================================
# Mappers
# ==========================================


def _product_from_row(row: ProductTable) -> Product:
    return Product(
        product_id=row.product_id,
        name=row.name,
        description=row.description,
        price=row.price,
        duration_months=row.duration_months,
        tax_rate=row.tax_rate,
        is_active=row.is_active,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _product_values(product: Product) -> dict[str, Any]:
    return {
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "duration_months": product.duration_months,
        "tax_rate": product.tax_rate,
        "is_active": product.is_active,
        "updated_at": product.updated_at,
    }


def _voucher_from_row(row: VoucherTable) -> Voucher:
    return Voucher(
        voucher_id=row.voucher_id,
        code=row.code,
        discount_type=DiscountType(row.discount_type),
        discount_value=row.discount_value,
        product_id=row.product_id,
        is_active=row.is_active,
        expires_at=_aware(row.expires_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _voucher_values(voucher: Voucher) -> dict[str, Any]:
    return {
        "code": voucher.code,
        "discount_type": voucher.discount_type.value,
        "discount_value": voucher.discount_value,
        "product_id": voucher.product_id,
        "is_active": voucher.is_active,
        "expires_at": voucher.expires_at,
        "updated_at": voucher.updated_at,
    }


def _subscription_from_row(row: SubscriptionTable) -> Subscription:
    return Subscription(
        subscription_id=row.subscription_id,
        user_id=row.user_id,
        product_id=row.product_id,
        status=SubscriptionStatus(row.status),
        start_date=_aware(row.start_date),
        end_date=_aware(row.end_date),
        trial_end_date=_aware(row.trial_end_date),
        voucher_id=row.voucher_id,
        original_price=row.original_price,
        discounted_price=row.discounted_price,
        tax_amount=row.tax_amount,
        total_amount=row.total_amount,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        version=row.version,
    )


def _subscription_values(subscription: Subscription) -> dict[str, Any]:
    return {
        "user_id": subscription.user_id,
        "product_id": subscription.product_id,
        "status": subscription.status.value,
        "start_date": subscription.start_date,
        "end_date": subscription.end_date,
        "trial_end_date": subscription.trial_end_date,
        "voucher_id": subscription.voucher_id,
        "original_price": subscription.original_price,
        "discounted_price": subscription.discounted_price,
        "tax_amount": subscription.tax_amount,
        "total_amount": subscription.total_amount,
        "updated_at": subscription.updated_at,
    }


def _state_change_from_row(row: SubscriptionStateChangeTable) -> SubscriptionStateChange:
    return SubscriptionStateChange(
        change_id=row.change_id,
        subscription_id=row.subscription_id,
        previous_state=SubscriptionStatus(row.previous_state) if row.previous_state else None,
        new_state=SubscriptionStatus(row.new_state),
        changed_at=_aware(row.changed_at),
        reason=row.reason,
    )


def _state_change_row(
    change: SubscriptionStateChange, sequence: int
) -> SubscriptionStateChangeTable:
    return SubscriptionStateChangeTable(
        change_id=change.change_id,
        subscription_id=change.subscription_id,
        previous_state=change.previous_state.value if change.previous_state else None,
        new_state=change.new_state.value,
        changed_at=change.changed_at,
        reason=change.reason,
        sequence=sequence,
    )


# ==========================================
# Repositories
# ==========================================


class SQLProductRepository(ProductRepository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, product: Product) -> None:
        async with self._session_factory() as session, session.begin():
            session.add(
                ProductTable(
                    product_id=product.product_id,
                    created_at=product.created_at,
                    **_product_values(product),
                )
            )

    async def get_by_id(self, product_id: UUID) -> Product:
        async with self._session_factory() as session:
            row = await session.get(ProductTable, product_id)
            if row is None:
                raise ProductNotFoundError(product_id=product_id)
            return _product_from_row(row)

    async def list_all(self) -> list[Product]:
        async with self._session_factory() as session:
            result = await session.execute(select(ProductTable).order_by(ProductTable.created_at))
            return [_product_from_row(row) for row in result.scalars().all()]

    async def update(self, product: Product) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(ProductTable)
                .where(ProductTable.product_id == product.product_id)
                .values(**_product_values(product))
            )
            if result.rowcount == 0:
                raise ProductNotFoundError(product_id=product.product_id)

    async def delete(self, product_id: UUID) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(ProductTable).where(ProductTable.product_id == product_id)
            )
            if result.rowcount == 0:
                raise ProductNotFoundError(product_id=product_id)


class SQLVoucherRepository(VoucherRepository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, voucher: Voucher) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                session.add(
                    VoucherTable(
                        voucher_id=voucher.voucher_id,
                        created_at=voucher.created_at,
                        **_voucher_values(voucher),
                    )
                )
        except IntegrityError as exc:
            raise DuplicateVoucherError(
                f"voucher code {voucher.code} already exists", voucher.code
            ) from exc

    async def get_by_id(self, voucher_id: UUID) -> Voucher:
        async with self._session_factory() as session:
            row = await session.get(VoucherTable, voucher_id)
            if row is None:
                raise VoucherNotFoundError(voucher_id=voucher_id)
            return _voucher_from_row(row)

    async def get_by_code(self, code: str) -> Voucher:
        code = code.upper()
        async with self._session_factory() as session:
            result = await session.execute(select(VoucherTable).where(VoucherTable.code == code))
            row = result.scalar_one_or_none()
            if row is None:
                raise VoucherNotFoundError(code=code)
            return _voucher_from_row(row)

    async def list_by_product(self, product_id: UUID) -> list[Voucher]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(VoucherTable)
                .where(VoucherTable.product_id == product_id)
                .order_by(VoucherTable.created_at)
            )
            return [_voucher_from_row(row) for row in result.scalars().all()]

    async def list_active(self) -> list[Voucher]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(VoucherTable)
                .where(VoucherTable.is_active.is_(True))
                .order_by(VoucherTable.created_at)
            )
            return [_voucher_from_row(row) for row in result.scalars().all()]

    async def update(self, voucher: Voucher) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(VoucherTable)
                    .where(VoucherTable.voucher_id == voucher.voucher_id)
                    .values(**_voucher_values(voucher))
                )
                if result.rowcount == 0:
                    raise VoucherNotFoundError(voucher_id=voucher.voucher_id)
        except IntegrityError as exc:
            raise DuplicateVoucherError(
                f"voucher code {voucher.code} already exists", voucher.code
            ) from exc

    async def delete(self, voucher_id: UUID) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(VoucherTable).where(VoucherTable.voucher_id == voucher_id)
            )
            if result.rowcount == 0:
                raise VoucherNotFoundError(voucher_id=voucher_id)


class SQLSubscriptionRepository(SubscriptionRepository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self, subscription: Subscription, initial_change: SubscriptionStateChange
    ) -> None:
        async with self._session_factory() as session, session.begin():
            session.add(
                SubscriptionTable(
                    subscription_id=subscription.subscription_id,
                    created_at=subscription.created_at,
                    version=subscription.version,
                    **_subscription_values(subscription),
                )
            )
            # parent row must exist before the audit row references it
            await session.flush()
            session.add(_state_change_row(initial_change, subscription.version))

    async def get_by_id(self, subscription_id: UUID) -> Subscription:
        async with self._session_factory() as session:
            row = await session.get(SubscriptionTable, subscription_id)
            if row is None:
                raise SubscriptionNotFoundError(subscription_id=subscription_id)
            return _subscription_from_row(row)

    async def get_by_user_id(self, user_id: UUID) -> list[Subscription]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SubscriptionTable)
                .where(SubscriptionTable.user_id == user_id)
                .order_by(SubscriptionTable.created_at.desc())
            )
            return [_subscription_from_row(row) for row in result.scalars().all()]

    async def _write_next_version(self, session: AsyncSession, subscription: Subscription) -> int:
        expected = subscription.version
        result = await session.execute(
            update(SubscriptionTable)
            .where(
                SubscriptionTable.subscription_id == subscription.subscription_id,
                SubscriptionTable.version == expected,
            )
            .values(version=expected + 1, **_subscription_values(subscription))
        )
        if result.rowcount == 0:
            exists = await session.get(SubscriptionTable, subscription.subscription_id)
            if exists is None:
                raise SubscriptionNotFoundError(subscription_id=subscription.subscription_id)
            logger.warning(
                "Stale subscription write rejected",
                subscription_id=str(subscription.subscription_id),
                expected_version=expected,
                stored_version=exists.version,
            )
            raise ConcurrentModificationError(subscription.subscription_id, expected)
        return expected + 1

    async def update(self, subscription: Subscription) -> None:
        async with self._session_factory() as session, session.begin():
            subscription.version = await self._write_next_version(session, subscription)

    async def append_state_change(self, change: SubscriptionStateChange) -> None:
        async with self._session_factory() as session, session.begin():
            parent = await session.get(SubscriptionTable, change.subscription_id)
            if parent is None:
                raise SubscriptionNotFoundError(subscription_id=change.subscription_id)
            session.add(_state_change_row(change, parent.version))

    async def get_state_changes(self, subscription_id: UUID) -> list[SubscriptionStateChange]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SubscriptionStateChangeTable)
                .where(SubscriptionStateChangeTable.subscription_id == subscription_id)
                .order_by(
                    SubscriptionStateChangeTable.changed_at.desc(),
                    SubscriptionStateChangeTable.sequence.desc(),
                )
            )
            return [_state_change_from_row(row) for row in result.scalars().all()]

    async def apply_transition(
        self, subscription: Subscription, change: SubscriptionStateChange
    ) -> None:
        async with self._session_factory() as session, session.begin():
            new_version = await self._write_next_version(session, subscription)
            session.add(_state_change_row(change, new_version))
        subscription.version = new_version
