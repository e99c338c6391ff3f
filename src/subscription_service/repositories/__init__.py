"""
Persistence ports and adapters.

Import implementations from their modules (``repositories.memory``,
``repositories.sql``); this package only exposes the interfaces.
"""

from subscription_service.repositories.base import (
    ProductRepository,
    SubscriptionRepository,
    VoucherRepository,
)

__all__ = ["ProductRepository", "SubscriptionRepository", "VoucherRepository"]
