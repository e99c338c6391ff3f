"""
Tests for the error hierarchy.
"""

import pytest

from subscription_service.exceptions import (
    ConcurrentModificationError,
    DuplicateVoucherError,
    FieldError,
    InactiveProductError,
    NotFoundError,
    ProductNotFoundError,
    SubscriptionAccessDeniedError,
    SubscriptionInTrialError,
    SubscriptionNotFoundError,
    SubscriptionServiceError,
    SubscriptionStateError,
    ValidationFailedError,
    VoucherError,
    VoucherExpiredError,
    VoucherNotFoundError,
)


class TestSubscriptionServiceError:
    def test_defaults(self):
        error = SubscriptionServiceError("boom")

        assert error.error_code == "SUBSCRIPTION_SERVICE_ERROR"
        assert error.status_code == 400
        assert error.context == {}
        assert str(error) == "boom"

    def test_to_dict(self):
        error = ProductNotFoundError(product_id="abc")

        assert error.to_dict() == {
            "error_code": "PRODUCT_NOT_FOUND",
            "message": "product not found",
            "status_code": 404,
            "context": {"product_id": "abc"},
            "recovery_hint": "Verify the product ID and ensure the product exists",
        }


class TestErrorGroups:
    @pytest.mark.parametrize(
        "error,base",
        [
            (ProductNotFoundError(), NotFoundError),
            (VoucherNotFoundError(code="X"), NotFoundError),
            (SubscriptionNotFoundError(), NotFoundError),
            (VoucherExpiredError(), VoucherError),
            (SubscriptionInTrialError("active"), SubscriptionStateError),
        ],
    )
    def test_grouping(self, error, base):
        assert isinstance(error, base)
        assert isinstance(error, SubscriptionServiceError)

    @pytest.mark.parametrize(
        "error,status",
        [
            (InactiveProductError(), 400),
            (DuplicateVoucherError("taken", "X"), 409),
            (ConcurrentModificationError("id", 3), 409),
            (SubscriptionAccessDeniedError("id", "user"), 403),
        ],
    )
    def test_status_hints(self, error, status):
        assert error.status_code == status


class TestValidationFailedError:
    def test_single_error_message(self):
        error = ValidationFailedError([FieldError("name", "must not be empty")])
        assert str(error) == "validation error on field 'name': must not be empty"

    def test_multiple_errors_message(self):
        error = ValidationFailedError(
            [FieldError("price", "too low"), FieldError("tax_rate", "too low")]
        )

        assert str(error) == "2 validation errors occurred"
        assert error.context["errors"] == [
            {"field": "price", "message": "too low"},
            {"field": "tax_rate", "message": "too low"},
        ]
        assert error.status_code == 422
