"""
Tests for subscription models.

Covers Pydantic model validation, enums, and derived properties.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from subscription_service.domain import build_request
from subscription_service.exceptions import ValidationFailedError
from subscription_service.subscriptions.models import (
    Subscription,
    SubscriptionCreateRequest,
    SubscriptionStateChange,
    SubscriptionStatus,
)
from tests.conftest import NOW


class TestSubscriptionStatus:
    def test_status_values(self):
        assert SubscriptionStatus.ACTIVE == "active"
        assert SubscriptionStatus.PAUSED == "paused"
        assert SubscriptionStatus.CANCELLED == "cancelled"

    def test_status_members(self):
        assert set(SubscriptionStatus.__members__) == {"ACTIVE", "PAUSED", "CANCELLED"}


class TestSubscription:
    """Test the subscription entity."""

    @pytest.fixture
    def data(self):
        return {
            "user_id": uuid4(),
            "product_id": uuid4(),
            "start_date": NOW,
            "end_date": NOW + timedelta(days=30),
            "original_price": Decimal("100.00"),
            "discounted_price": Decimal("75.00"),
            "tax_amount": Decimal("15.00"),
            "total_amount": Decimal("90.00"),
        }

    def test_defaults(self, data):
        subscription = Subscription(**data)

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.version == 1
        assert subscription.trial_end_date is None
        assert subscription.effective_price == Decimal("75.00")

    def test_effective_price_without_discount(self, data):
        data["discounted_price"] = None
        assert Subscription(**data).effective_price == Decimal("100.00")

    def test_end_must_follow_start(self, data):
        data["end_date"] = data["start_date"]
        with pytest.raises(ValidationError, match="end_date must be after start_date"):
            Subscription(**data)

    def test_trial_end_must_equal_start(self, data):
        data["trial_end_date"] = NOW - timedelta(days=1)
        with pytest.raises(ValidationError):
            Subscription(**data)

    def test_is_in_trial(self, data):
        trial_end = NOW + timedelta(days=31)
        data.update(
            start_date=trial_end, end_date=trial_end + timedelta(days=30), trial_end_date=trial_end
        )
        subscription = Subscription(**data)

        assert subscription.is_in_trial(NOW)
        assert not subscription.is_in_trial(trial_end)

    def test_relations_excluded_from_dump(self, data, make_product):
        subscription = Subscription(**data)
        subscription.product = make_product()

        dumped = subscription.model_dump()

        assert "product" not in dumped
        assert "voucher" not in dumped

    def test_negative_amount_rejected(self, data):
        data["tax_amount"] = Decimal("-0.01")
        with pytest.raises(ValidationError):
            Subscription(**data)


class TestSubscriptionStateChange:
    def test_is_immutable(self):
        change = SubscriptionStateChange(
            subscription_id=uuid4(),
            previous_state=SubscriptionStatus.ACTIVE,
            new_state=SubscriptionStatus.PAUSED,
            reason="User requested pause",
        )

        with pytest.raises(ValidationError):
            change.reason = "edited"


class TestSubscriptionCreateRequest:
    def test_parses_string_ids_and_normalises_code(self):
        user_id = uuid4()
        request = SubscriptionCreateRequest(
            user_id=str(user_id), product_id=str(uuid4()), voucher_code=" summer25 "
        )

        assert request.user_id == user_id
        assert request.voucher_code == "SUMMER25"
        assert request.with_trial is False

    def test_blank_voucher_code_is_none(self):
        request = SubscriptionCreateRequest(user_id=uuid4(), product_id=uuid4(), voucher_code="  ")
        assert request.voucher_code is None

    def test_nil_uuid_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            build_request(SubscriptionCreateRequest, user_id=UUID(int=0), product_id=uuid4())

        assert str(exc_info.value) == "validation error on field 'user_id': must not be empty"

    def test_every_bad_field_reported(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            build_request(SubscriptionCreateRequest, user_id="", product_id="not-a-uuid")

        assert [e.field for e in exc_info.value.errors] == ["user_id", "product_id"]
