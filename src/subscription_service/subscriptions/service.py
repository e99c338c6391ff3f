"""
Subscription orchestration service.

Composes product lookup, voucher eligibility, pricing and the lifecycle state
machine, and persists every change together with its audit record.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from dateutil.relativedelta import relativedelta

from subscription_service.domain import build_request, utcnow
from subscription_service.exceptions import (
    InactiveProductError,
    SubscriptionAccessDeniedError,
)
from subscription_service.logging import log_audit_event
from subscription_service.money_utils import MoneyHandler
from subscription_service.pricing.engine import compute_pricing
from subscription_service.repositories.base import (
    ProductRepository,
    SubscriptionRepository,
    VoucherRepository,
)
from subscription_service.settings import Settings, get_settings
from subscription_service.subscriptions import lifecycle
from subscription_service.subscriptions.models import (
    Subscription,
    SubscriptionCreateRequest,
    SubscriptionStateChange,
)
from subscription_service.vouchers.eligibility import check_voucher_eligibility
from subscription_service.vouchers.models import Voucher

logger = structlog.get_logger(__name__)

Transition = Callable[[Subscription, datetime], SubscriptionStateChange | None]


class SubscriptionService:
    """Create subscriptions and drive them through their lifecycle."""

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        products: ProductRepository,
        vouchers: VoucherRepository,
        clock: Callable[[], datetime] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._subscriptions = subscriptions
        self._products = products
        self._vouchers = vouchers
        self._clock = clock or utcnow
        self._settings = settings or get_settings()
        self._money = MoneyHandler(
            currency=self._settings.billing.currency, locale=self._settings.billing.locale
        )

    # ========================================
    # Creation
    # ========================================

    async def create_subscription(
        self,
        user_id: UUID | str,
        product_id: UUID | str,
        voucher_code: str | None = None,
        with_trial: bool = False,
    ) -> Subscription:
        """
        Subscribe a user to a product.

        The voucher, when given, must exist and be eligible; any voucher
        failure aborts the creation.

        Raises:
            ValidationFailedError: malformed or empty ids
            ProductNotFoundError: unknown product
            InactiveProductError: product is not active
            VoucherNotFoundError: unknown voucher code
            VoucherError: voucher inactive, expired or scoped elsewhere
        """
        request = build_request(
            SubscriptionCreateRequest,
            user_id=user_id,
            product_id=product_id,
            voucher_code=voucher_code,
            with_trial=with_trial,
        )

        product = await self._products.get_by_id(request.product_id)
        if not product.is_active:
            raise InactiveProductError(product_id=product.product_id)

        now = self._clock()
        trial_end_date = None
        start_date = now
        if request.with_trial:
            trial_end_date = now + relativedelta(months=self._settings.billing.trial_months)
            start_date = trial_end_date
        end_date = start_date + relativedelta(months=product.duration_months)

        voucher: Voucher | None = None
        if request.voucher_code:
            voucher = await self._vouchers.get_by_code(request.voucher_code)
            check_voucher_eligibility(voucher, product.product_id, now)

        pricing = compute_pricing(product.price, product.tax_rate, voucher).quantize(self._money)

        subscription = Subscription(
            user_id=request.user_id,
            product_id=product.product_id,
            start_date=start_date,
            end_date=end_date,
            trial_end_date=trial_end_date,
            voucher_id=voucher.voucher_id if voucher else None,
            original_price=pricing.original_price,
            discounted_price=pricing.discounted_price,
            tax_amount=pricing.tax_amount,
            total_amount=pricing.total_amount,
            created_at=now,
            updated_at=now,
        )
        await self._subscriptions.create(subscription, lifecycle.record_creation(subscription, now))

        subscription.product = product
        subscription.voucher = voucher

        logger.info(
            "Subscription created",
            subscription_id=str(subscription.subscription_id),
            user_id=str(subscription.user_id),
            product_id=str(product.product_id),
            voucher_code=voucher.code if voucher else None,
            with_trial=request.with_trial,
            total_amount=str(subscription.total_amount),
        )
        log_audit_event(
            "subscription.created",
            "subscription",
            user_id=str(subscription.user_id),
            resource_type="subscription",
            resource_id=str(subscription.subscription_id),
            new_state=subscription.status.value,
            pricing=pricing.to_dict(self._money),
        )
        return subscription

    # ========================================
    # Queries
    # ========================================

    async def get_subscription(
        self, subscription_id: UUID, user_id: UUID | None = None
    ) -> Subscription:
        """
        Fetch a subscription.

        When ``user_id`` is given the subscription must belong to that user.

        Raises:
            SubscriptionNotFoundError: unknown subscription
            SubscriptionAccessDeniedError: owned by a different user
        """
        subscription = await self._subscriptions.get_by_id(subscription_id)
        if user_id is not None and subscription.user_id != user_id:
            logger.warning(
                "Subscription access denied",
                subscription_id=str(subscription_id),
                user_id=str(user_id),
            )
            raise SubscriptionAccessDeniedError(subscription_id, user_id)
        return subscription

    async def list_user_subscriptions(self, user_id: UUID) -> list[Subscription]:
        """A user's subscriptions, newest first."""
        return await self._subscriptions.get_by_user_id(user_id)

    async def get_state_changes(
        self, subscription_id: UUID, user_id: UUID | None = None
    ) -> list[SubscriptionStateChange]:
        """Audit trail of a subscription, most recent first."""
        await self.get_subscription(subscription_id, user_id)
        return await self._subscriptions.get_state_changes(subscription_id)

    # ========================================
    # Lifecycle
    # ========================================

    async def pause_subscription(
        self, subscription_id: UUID, user_id: UUID | None = None
    ) -> Subscription:
        """
        Raises:
            SubscriptionNotActiveError: not active
            SubscriptionInTrialError: trial period still running
            ConcurrentModificationError: changed by another writer meanwhile
        """
        return await self._apply(subscription_id, user_id, lifecycle.pause)

    async def unpause_subscription(
        self, subscription_id: UUID, user_id: UUID | None = None
    ) -> Subscription:
        """
        Raises:
            SubscriptionNotPausedError: not paused
            ConcurrentModificationError: changed by another writer meanwhile
        """
        return await self._apply(subscription_id, user_id, lifecycle.unpause)

    async def cancel_subscription(
        self, subscription_id: UUID, user_id: UUID | None = None
    ) -> Subscription:
        """Cancel a subscription. Cancelling twice is a no-op."""
        return await self._apply(subscription_id, user_id, lifecycle.cancel)

    async def _apply(
        self, subscription_id: UUID, user_id: UUID | None, transition: Transition
    ) -> Subscription:
        subscription = await self.get_subscription(subscription_id, user_id)

        change = transition(subscription, self._clock())
        if change is None:
            logger.debug(
                "Subscription unchanged",
                subscription_id=str(subscription_id),
                status=subscription.status.value,
            )
            return subscription

        await self._subscriptions.apply_transition(subscription, change)

        previous = change.previous_state.value if change.previous_state else None
        logger.info(
            "Subscription state changed",
            subscription_id=str(subscription_id),
            previous_state=previous,
            new_state=change.new_state.value,
            version=subscription.version,
        )
        log_audit_event(
            f"subscription.{change.new_state.value}",
            "subscription",
            user_id=str(subscription.user_id),
            resource_type="subscription",
            resource_id=str(subscription_id),
            **_audit_details(change),
        )
        return subscription


def _audit_details(change: SubscriptionStateChange) -> dict[str, Any]:
    return {
        "previous_state": change.previous_state.value if change.previous_state else None,
        "new_state": change.new_state.value,
        "reason": change.reason,
        "changed_at": change.changed_at.isoformat(),
    }
