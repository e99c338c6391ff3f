"""
Subscription service exceptions.

Every error carries a machine-readable code, an HTTP status hint, context and
a recovery hint so calling layers can map failures without string matching.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


class SubscriptionServiceError(Exception):
    """
    Base error with enhanced context.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for API responses
        status_code: HTTP status code for this error type
        context: Additional context data about the error
        recovery_hint: Suggested action to resolve the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        self.message = message
        self.error_code = error_code or "SUBSCRIPTION_SERVICE_ERROR"
        self.status_code = status_code
        self.context = context or {}
        self.recovery_hint = recovery_hint
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "recovery_hint": self.recovery_hint,
        }


# ============================================================================
# Validation
# ============================================================================


@dataclass(frozen=True)
class FieldError:
    """A single invalid input field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"validation error on field '{self.field}': {self.message}"


class ValidationFailedError(SubscriptionServiceError):
    """One or more input fields are invalid."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors = list(errors)
        if len(self.errors) == 1:
            message = str(self.errors[0])
        elif self.errors:
            message = f"{len(self.errors)} validation errors occurred"
        else:
            message = "no validation errors"

        super().__init__(
            message,
            "VALIDATION_FAILED",
            status_code=422,
            context={"errors": [{"field": e.field, "message": e.message} for e in self.errors]},
            recovery_hint="Correct the listed fields and retry",
        )


# ============================================================================
# Not found
# ============================================================================


class NotFoundError(SubscriptionServiceError):
    """Requested resource does not exist."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message, error_code, status_code=404, context=context, recovery_hint=recovery_hint
        )


class ProductNotFoundError(NotFoundError):
    """Product not found error."""

    def __init__(self, message: str = "product not found", product_id: Any = None) -> None:
        context = {}
        if product_id:
            context["product_id"] = str(product_id)

        super().__init__(
            message,
            "PRODUCT_NOT_FOUND",
            context=context,
            recovery_hint="Verify the product ID and ensure the product exists",
        )


class VoucherNotFoundError(NotFoundError):
    """Voucher not found error."""

    def __init__(
        self, message: str = "voucher not found", voucher_id: Any = None, code: str | None = None
    ) -> None:
        context = {}
        if voucher_id:
            context["voucher_id"] = str(voucher_id)
        if code:
            context["code"] = code

        super().__init__(
            message,
            "VOUCHER_NOT_FOUND",
            context=context,
            recovery_hint="Verify the voucher code",
        )


class SubscriptionNotFoundError(NotFoundError):
    """Subscription not found error."""

    def __init__(
        self, message: str = "subscription not found", subscription_id: Any = None
    ) -> None:
        context = {}
        if subscription_id:
            context["subscription_id"] = str(subscription_id)

        super().__init__(
            message,
            "SUBSCRIPTION_NOT_FOUND",
            context=context,
            recovery_hint="Verify the subscription ID and ensure it exists and is accessible",
        )


# ============================================================================
# Product / voucher business rules
# ============================================================================


class InactiveProductError(SubscriptionServiceError):
    """Product exists but cannot be subscribed to."""

    def __init__(self, message: str = "product is not active", product_id: Any = None) -> None:
        super().__init__(
            message,
            "INACTIVE_PRODUCT",
            status_code=400,
            context={"product_id": str(product_id)} if product_id else {},
            recovery_hint="Choose an active product",
        )


class VoucherError(SubscriptionServiceError):
    """Voucher cannot be applied."""

    def __init__(
        self,
        message: str,
        error_code: str = "VOUCHER_ERROR",
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message, error_code, status_code=400, context=context, recovery_hint=recovery_hint
        )


class VoucherInactiveError(VoucherError):
    """Voucher has been deactivated."""

    def __init__(self, message: str = "voucher is not active", code: str | None = None) -> None:
        super().__init__(
            message,
            "VOUCHER_INACTIVE",
            context={"code": code} if code else {},
            recovery_hint="Use an active voucher",
        )


class VoucherExpiredError(VoucherError):
    """Voucher expiry has passed."""

    def __init__(self, message: str = "voucher is expired", code: str | None = None) -> None:
        super().__init__(
            message,
            "VOUCHER_EXPIRED",
            context={"code": code} if code else {},
            recovery_hint="Use a voucher that has not expired",
        )


class VoucherNotApplicableError(VoucherError):
    """Voucher is scoped to another product."""

    def __init__(
        self,
        message: str = "voucher is invalid",
        code: str | None = None,
        product_id: Any = None,
    ) -> None:
        context = {}
        if code:
            context["code"] = code
        if product_id:
            context["product_id"] = str(product_id)

        super().__init__(
            message,
            "VOUCHER_NOT_APPLICABLE",
            context=context,
            recovery_hint="This voucher can only be used with the product it was issued for",
        )


class DuplicateVoucherError(SubscriptionServiceError):
    """Voucher code already exists."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(
            message,
            "DUPLICATE_VOUCHER",
            status_code=409,
            context={"code": code},
            recovery_hint="Use a unique voucher code or update the existing voucher",
        )


# ============================================================================
# Subscription state
# ============================================================================


class SubscriptionStateError(SubscriptionServiceError):
    """Invalid subscription state transition error."""

    def __init__(
        self,
        message: str,
        current_state: str,
        requested_state: str,
        error_code: str = "INVALID_SUBSCRIPTION_STATE",
    ) -> None:
        super().__init__(
            message,
            error_code,
            status_code=409,
            context={"current_state": current_state, "requested_state": requested_state},
            recovery_hint=(
                f"Cannot transition from {current_state} to {requested_state}. "
                "Check subscription status first."
            ),
        )


class SubscriptionNotActiveError(SubscriptionStateError):
    """Pause requested on a subscription that is not active."""

    def __init__(self, current_state: str) -> None:
        super().__init__(
            "subscription is not active", current_state, "paused", "SUBSCRIPTION_NOT_ACTIVE"
        )


class SubscriptionInTrialError(SubscriptionStateError):
    """Pause requested while the trial period is running."""

    def __init__(self, current_state: str) -> None:
        super().__init__(
            "subscription is in trial period", current_state, "paused", "SUBSCRIPTION_IN_TRIAL"
        )


class SubscriptionNotPausedError(SubscriptionStateError):
    """Unpause requested on a subscription that is not paused."""

    def __init__(self, current_state: str) -> None:
        super().__init__(
            "subscription is not paused", current_state, "active", "SUBSCRIPTION_NOT_PAUSED"
        )


class ConcurrentModificationError(SubscriptionServiceError):
    """Subscription changed between read and write."""

    def __init__(self, subscription_id: Any, expected_version: int) -> None:
        super().__init__(
            "subscription was modified concurrently",
            "CONCURRENT_MODIFICATION",
            status_code=409,
            context={
                "subscription_id": str(subscription_id),
                "expected_version": expected_version,
            },
            recovery_hint="Reload the subscription and retry the operation",
        )


class SubscriptionAccessDeniedError(SubscriptionServiceError):
    """Subscription belongs to another user."""

    def __init__(self, subscription_id: Any, user_id: Any) -> None:
        super().__init__(
            "access denied",
            "SUBSCRIPTION_ACCESS_DENIED",
            status_code=403,
            context={"subscription_id": str(subscription_id), "user_id": str(user_id)},
        )
