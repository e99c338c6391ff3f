"""
Repository interfaces (ports).

All methods are async. Lookups by id raise the matching NotFoundError
subclass instead of returning None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from subscription_service.catalog.models import Product
    from subscription_service.subscriptions.models import Subscription, SubscriptionStateChange
    from subscription_service.vouchers.models import Voucher


class ProductRepository(ABC):
    """Product persistence."""

    @abstractmethod
    async def create(self, product: Product) -> None: ...

    @abstractmethod
    async def get_by_id(self, product_id: UUID) -> Product:
        """
        Raises:
            ProductNotFoundError: no product with this id
        """

    @abstractmethod
    async def list_all(self) -> list[Product]: ...

    @abstractmethod
    async def update(self, product: Product) -> None: ...

    @abstractmethod
    async def delete(self, product_id: UUID) -> None: ...


class VoucherRepository(ABC):
    """Voucher persistence. Codes are stored upper-cased and unique."""

    @abstractmethod
    async def create(self, voucher: Voucher) -> None:
        """
        Raises:
            DuplicateVoucherError: code already in use
        """

    @abstractmethod
    async def get_by_id(self, voucher_id: UUID) -> Voucher: ...

    @abstractmethod
    async def get_by_code(self, code: str) -> Voucher:
        """
        Raises:
            VoucherNotFoundError: no voucher with this code
        """

    @abstractmethod
    async def list_by_product(self, product_id: UUID) -> list[Voucher]: ...

    @abstractmethod
    async def list_active(self) -> list[Voucher]: ...

    @abstractmethod
    async def update(self, voucher: Voucher) -> None: ...

    @abstractmethod
    async def delete(self, voucher_id: UUID) -> None: ...


class SubscriptionRepository(ABC):
    """
    Subscription and state change persistence.

    Writes that touch an existing subscription compare its ``version`` with
    the stored one, store ``version + 1`` and update the passed entity to
    match. A mismatch raises ConcurrentModificationError and writes nothing.
    """

    @abstractmethod
    async def create(
        self, subscription: Subscription, initial_change: SubscriptionStateChange
    ) -> None:
        """Insert a subscription together with its creation record."""

    @abstractmethod
    async def get_by_id(self, subscription_id: UUID) -> Subscription:
        """
        Raises:
            SubscriptionNotFoundError: no subscription with this id
        """

    @abstractmethod
    async def get_by_user_id(self, user_id: UUID) -> list[Subscription]:
        """Subscriptions of a user, newest first."""

    @abstractmethod
    async def update(self, subscription: Subscription) -> None:
        """
        Raises:
            SubscriptionNotFoundError: subscription does not exist
            ConcurrentModificationError: stored version differs
        """

    @abstractmethod
    async def append_state_change(self, change: SubscriptionStateChange) -> None: ...

    @abstractmethod
    async def get_state_changes(self, subscription_id: UUID) -> list[SubscriptionStateChange]:
        """State changes of a subscription, most recent first."""

    @abstractmethod
    async def apply_transition(
        self, subscription: Subscription, change: SubscriptionStateChange
    ) -> None:
        """Update the subscription and append the state change as one unit."""
