"""
In-memory repositories.

State is deep-copied on the way in and out so callers never share mutable
entities with the store. Writes against one subscription are serialized by a
per-id asyncio lock.
"""

import asyncio
from uuid import UUID

from subscription_service.catalog.models import Product
from subscription_service.exceptions import (
    ConcurrentModificationError,
    DuplicateVoucherError,
    ProductNotFoundError,
    SubscriptionNotFoundError,
    VoucherNotFoundError,
)
from subscription_service.repositories.base import (
    ProductRepository,
    SubscriptionRepository,
    VoucherRepository,
)
from subscription_service.subscriptions.models import Subscription, SubscriptionStateChange
from subscription_service.vouchers.models import Voucher


class InMemoryProductRepository(ProductRepository):
    def __init__(self) -> None:
        self._products: dict[UUID, Product] = {}

    async def create(self, product: Product) -> None:
        self._products[product.product_id] = product.model_copy(deep=True)

    async def get_by_id(self, product_id: UUID) -> Product:
        try:
            return self._products[product_id].model_copy(deep=True)
        except KeyError:
            raise ProductNotFoundError(product_id=product_id) from None

    async def list_all(self) -> list[Product]:
        products = sorted(self._products.values(), key=lambda p: p.created_at)
        return [p.model_copy(deep=True) for p in products]

    async def update(self, product: Product) -> None:
        if product.product_id not in self._products:
            raise ProductNotFoundError(product_id=product.product_id)
        self._products[product.product_id] = product.model_copy(deep=True)

    async def delete(self, product_id: UUID) -> None:
        if self._products.pop(product_id, None) is None:
            raise ProductNotFoundError(product_id=product_id)


class InMemoryVoucherRepository(VoucherRepository):
    def __init__(self) -> None:
        self._vouchers: dict[UUID, Voucher] = {}

    def _code_taken(self, code: str, exclude: UUID | None = None) -> bool:
        return any(v.code == code and v.voucher_id != exclude for v in self._vouchers.values())

    async def create(self, voucher: Voucher) -> None:
        if self._code_taken(voucher.code):
            raise DuplicateVoucherError(f"voucher code {voucher.code} already exists", voucher.code)
        self._vouchers[voucher.voucher_id] = voucher.model_copy(deep=True)

    async def get_by_id(self, voucher_id: UUID) -> Voucher:
        try:
            return self._vouchers[voucher_id].model_copy(deep=True)
        except KeyError:
            raise VoucherNotFoundError(voucher_id=voucher_id) from None

    async def get_by_code(self, code: str) -> Voucher:
        code = code.upper()
        for voucher in self._vouchers.values():
            if voucher.code == code:
                return voucher.model_copy(deep=True)
        raise VoucherNotFoundError(code=code)

    async def list_by_product(self, product_id: UUID) -> list[Voucher]:
        return [
            v.model_copy(deep=True) for v in self._vouchers.values() if v.product_id == product_id
        ]

    async def list_active(self) -> list[Voucher]:
        return [v.model_copy(deep=True) for v in self._vouchers.values() if v.is_active]

    async def update(self, voucher: Voucher) -> None:
        if voucher.voucher_id not in self._vouchers:
            raise VoucherNotFoundError(voucher_id=voucher.voucher_id)
        if self._code_taken(voucher.code, exclude=voucher.voucher_id):
            raise DuplicateVoucherError(f"voucher code {voucher.code} already exists", voucher.code)
        self._vouchers[voucher.voucher_id] = voucher.model_copy(deep=True)

    async def delete(self, voucher_id: UUID) -> None:
        if self._vouchers.pop(voucher_id, None) is None:
            raise VoucherNotFoundError(voucher_id=voucher_id)


class InMemorySubscriptionRepository(SubscriptionRepository):
    """
    Subscriptions held in a dict.

    One lock exists per stored subscription; writes against unknown ids fail
    without allocating one.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[UUID, Subscription] = {}
        self._state_changes: list[SubscriptionStateChange] = []
        self._locks: dict[UUID, asyncio.Lock] = {}

    def _lock_for(self, subscription_id: UUID) -> asyncio.Lock:
        try:
            return self._locks[subscription_id]
        except KeyError:
            raise SubscriptionNotFoundError(subscription_id=subscription_id) from None

    @staticmethod
    def _snapshot(subscription: Subscription) -> Subscription:
        return subscription.model_copy(update={"product": None, "voucher": None}, deep=True)

    def _check_version(self, subscription: Subscription) -> None:
        stored = self._subscriptions.get(subscription.subscription_id)
        if stored is None:
            raise SubscriptionNotFoundError(subscription_id=subscription.subscription_id)
        if stored.version != subscription.version:
            raise ConcurrentModificationError(subscription.subscription_id, subscription.version)

    def _store_next_version(self, subscription: Subscription) -> None:
        subscription.version += 1
        self._subscriptions[subscription.subscription_id] = self._snapshot(subscription)

    async def create(
        self, subscription: Subscription, initial_change: SubscriptionStateChange
    ) -> None:
        async with self._locks.setdefault(subscription.subscription_id, asyncio.Lock()):
            self._subscriptions[subscription.subscription_id] = self._snapshot(subscription)
            self._state_changes.append(initial_change)

    async def get_by_id(self, subscription_id: UUID) -> Subscription:
        try:
            return self._subscriptions[subscription_id].model_copy(deep=True)
        except KeyError:
            raise SubscriptionNotFoundError(subscription_id=subscription_id) from None

    async def get_by_user_id(self, user_id: UUID) -> list[Subscription]:
        owned = [s for s in self._subscriptions.values() if s.user_id == user_id]
        owned.sort(key=lambda s: s.created_at, reverse=True)
        return [s.model_copy(deep=True) for s in owned]

    async def update(self, subscription: Subscription) -> None:
        async with self._lock_for(subscription.subscription_id):
            self._check_version(subscription)
            self._store_next_version(subscription)

    async def append_state_change(self, change: SubscriptionStateChange) -> None:
        self._state_changes.append(change)

    async def get_state_changes(self, subscription_id: UUID) -> list[SubscriptionStateChange]:
        changes = [c for c in reversed(self._state_changes) if c.subscription_id == subscription_id]
        return sorted(changes, key=lambda c: c.changed_at, reverse=True)

    async def apply_transition(
        self, subscription: Subscription, change: SubscriptionStateChange
    ) -> None:
        async with self._lock_for(subscription.subscription_id):
            self._check_version(subscription)
            self._store_next_version(subscription)
            self._state_changes.append(change)
