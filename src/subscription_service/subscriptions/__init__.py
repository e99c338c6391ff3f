"""Subscriptions: models, lifecycle state machine and orchestration."""

from subscription_service.subscriptions.models import (
    Subscription,
    SubscriptionCreateRequest,
    SubscriptionStateChange,
    SubscriptionStatus,
)
from subscription_service.subscriptions.service import SubscriptionService

__all__ = [
    "Subscription",
    "SubscriptionCreateRequest",
    "SubscriptionStateChange",
    "SubscriptionStatus",
    "SubscriptionService",
]
