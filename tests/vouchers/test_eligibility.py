"""
Tests for voucher eligibility rules.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from subscription_service.exceptions import (
    VoucherError,
    VoucherExpiredError,
    VoucherInactiveError,
    VoucherNotApplicableError,
)
from subscription_service.vouchers.eligibility import (
    check_voucher_eligibility,
    is_expired,
    is_voucher_eligible,
)
from tests.conftest import NOW


class TestIsExpired:
    def test_before_expiry(self, make_voucher):
        voucher = make_voucher(expires_at=NOW + timedelta(seconds=1))
        assert not is_expired(voucher, NOW)

    def test_at_expiry_instant_is_still_valid(self, make_voucher):
        voucher = make_voucher(expires_at=NOW)
        assert not is_expired(voucher, NOW)

    def test_after_expiry(self, make_voucher):
        voucher = make_voucher(expires_at=NOW - timedelta(microseconds=1))
        assert is_expired(voucher, NOW)


class TestCheckVoucherEligibility:
    """Test eligibility checks and their precedence."""

    def test_eligible_scoped_voucher(self, make_voucher):
        product_id = uuid4()
        voucher = make_voucher(product_id=product_id)

        check_voucher_eligibility(voucher, product_id, NOW)

    def test_unscoped_voucher_applies_to_any_product(self, make_voucher):
        voucher = make_voucher(product_id=None)
        check_voucher_eligibility(voucher, uuid4(), NOW)

    def test_inactive(self, make_voucher):
        voucher = make_voucher(is_active=False)

        with pytest.raises(VoucherInactiveError) as exc_info:
            check_voucher_eligibility(voucher, uuid4(), NOW)

        assert exc_info.value.error_code == "VOUCHER_INACTIVE"
        assert exc_info.value.context["code"] == "SUMMER25"

    def test_expired(self, make_voucher):
        voucher = make_voucher(expires_at=NOW - timedelta(days=1))

        with pytest.raises(VoucherExpiredError):
            check_voucher_eligibility(voucher, uuid4(), NOW)

    def test_scoped_to_other_product(self, make_voucher):
        voucher = make_voucher(product_id=uuid4())

        with pytest.raises(VoucherNotApplicableError) as exc_info:
            check_voucher_eligibility(voucher, uuid4(), NOW)

        assert str(exc_info.value) == "voucher is invalid"

    def test_inactive_reported_before_expired(self, make_voucher):
        voucher = make_voucher(is_active=False, expires_at=NOW - timedelta(days=1))

        with pytest.raises(VoucherInactiveError):
            check_voucher_eligibility(voucher, uuid4(), NOW)

    def test_expired_reported_before_scope(self, make_voucher):
        voucher = make_voucher(product_id=uuid4(), expires_at=NOW - timedelta(days=1))

        with pytest.raises(VoucherExpiredError):
            check_voucher_eligibility(voucher, uuid4(), NOW)

    def test_all_failures_are_voucher_errors(self):
        for error_class in (VoucherInactiveError, VoucherExpiredError, VoucherNotApplicableError):
            assert issubclass(error_class, VoucherError)


class TestIsVoucherEligible:
    def test_true_when_eligible(self, make_voucher):
        assert is_voucher_eligible(make_voucher(), uuid4(), NOW)

    def test_false_when_expired(self, make_voucher):
        voucher = make_voucher(expires_at=NOW - timedelta(hours=1))
        assert not is_voucher_eligible(voucher, uuid4(), NOW)
