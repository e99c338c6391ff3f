"""
Subscription lifecycle state machine.

    active --pause--> paused --unpause--> active
    active/paused --cancel--> cancelled (terminal)

Each transition mutates the subscription in place and returns the state
change record to persist with it. Persistence is the caller's concern.
"""

from datetime import datetime

from subscription_service.exceptions import (
    SubscriptionInTrialError,
    SubscriptionNotActiveError,
    SubscriptionNotPausedError,
)
from subscription_service.subscriptions.models import (
    Subscription,
    SubscriptionStateChange,
    SubscriptionStatus,
)

REASON_CREATED = "Subscription created"
REASON_PAUSE = "User requested pause"
REASON_UNPAUSE = "User requested unpause"
REASON_CANCEL = "User requested cancellation"

VALID_TRANSITIONS: dict[SubscriptionStatus, set[SubscriptionStatus]] = {
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.PAUSED: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.CANCELLED: set(),
}


def can_transition(from_status: SubscriptionStatus, to_status: SubscriptionStatus) -> bool:
    return to_status in VALID_TRANSITIONS[from_status]


def is_terminal(status: SubscriptionStatus) -> bool:
    return not VALID_TRANSITIONS[status]


def record_creation(subscription: Subscription, now: datetime) -> SubscriptionStateChange:
    """State change written alongside a newly created subscription."""
    return SubscriptionStateChange(
        subscription_id=subscription.subscription_id,
        previous_state=None,
        new_state=subscription.status,
        changed_at=now,
        reason=REASON_CREATED,
    )


def _transition(
    subscription: Subscription, new_status: SubscriptionStatus, reason: str, now: datetime
) -> SubscriptionStateChange:
    previous = subscription.status
    subscription.status = new_status
    subscription.updated_at = now
    return SubscriptionStateChange(
        subscription_id=subscription.subscription_id,
        previous_state=previous,
        new_state=new_status,
        changed_at=now,
        reason=reason,
    )


def pause(subscription: Subscription, now: datetime) -> SubscriptionStateChange:
    """
    Pause an active subscription.

    Raises:
        SubscriptionNotActiveError: status is not active
        SubscriptionInTrialError: the trial period has not ended yet
    """
    if not can_transition(subscription.status, SubscriptionStatus.PAUSED):
        raise SubscriptionNotActiveError(subscription.status.value)

    if subscription.is_in_trial(now):
        raise SubscriptionInTrialError(subscription.status.value)

    return _transition(subscription, SubscriptionStatus.PAUSED, REASON_PAUSE, now)


def unpause(subscription: Subscription, now: datetime) -> SubscriptionStateChange:
    """
    Resume a paused subscription.

    Raises:
        SubscriptionNotPausedError: status is not paused
    """
    if not can_transition(subscription.status, SubscriptionStatus.ACTIVE):
        raise SubscriptionNotPausedError(subscription.status.value)

    return _transition(subscription, SubscriptionStatus.ACTIVE, REASON_UNPAUSE, now)


def cancel(subscription: Subscription, now: datetime) -> SubscriptionStateChange | None:
    """
    Cancel a subscription.

    Returns None when the subscription is already cancelled; nothing
    changes and no state change should be recorded.
    """
    if is_terminal(subscription.status):
        return None

    return _transition(subscription, SubscriptionStatus.CANCELLED, REASON_CANCEL, now)
