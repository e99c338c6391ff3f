"""
Shared fixtures for subscription service tests.

Services run against the in-memory repositories and a controllable clock.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio

from subscription_service.catalog.models import Product
from subscription_service.catalog.service import ProductService
from subscription_service.repositories.memory import (
    InMemoryProductRepository,
    InMemorySubscriptionRepository,
    InMemoryVoucherRepository,
)
from subscription_service.settings import Settings, reset_settings
from subscription_service.subscriptions.service import SubscriptionService
from subscription_service.vouchers.models import DiscountType, Voucher
from subscription_service.vouchers.service import VoucherService

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _reset_settings():
    """Drop the cached settings around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def user_id():
    return uuid4()


# ========================================
# Repositories and services
# ========================================


@pytest.fixture
def product_repo() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def voucher_repo() -> InMemoryVoucherRepository:
    return InMemoryVoucherRepository()


@pytest.fixture
def subscription_repo() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def product_service(product_repo) -> ProductService:
    return ProductService(product_repo)


@pytest.fixture
def voucher_service(voucher_repo, product_repo, clock) -> VoucherService:
    return VoucherService(voucher_repo, product_repo, clock=clock)


@pytest.fixture
def subscription_service(
    subscription_repo, product_repo, voucher_repo, clock, settings
) -> SubscriptionService:
    return SubscriptionService(
        subscription_repo, product_repo, voucher_repo, clock=clock, settings=settings
    )


# ========================================
# Entity factories
# ========================================


@pytest.fixture
def make_product() -> Callable[..., Product]:
    def _make(**overrides: Any) -> Product:
        data: dict[str, Any] = {
            "name": "Premium Plan",
            "description": "Monthly premium access",
            "price": Decimal("100.00"),
            "duration_months": 1,
            "tax_rate": Decimal("0.20"),
        }
        data.update(overrides)
        return Product(**data)

    return _make


@pytest.fixture
def make_voucher() -> Callable[..., Voucher]:
    def _make(**overrides: Any) -> Voucher:
        data: dict[str, Any] = {
            "code": "SUMMER25",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("25"),
            "expires_at": NOW + timedelta(days=30),
        }
        data.update(overrides)
        return Voucher(**data)

    return _make


@pytest_asyncio.fixture
async def product(product_repo, make_product) -> Product:
    """A stored active product: 100.00 per month, 20% tax."""
    product = make_product()
    await product_repo.create(product)
    return product


@pytest_asyncio.fixture
async def voucher(voucher_repo, product, make_voucher) -> Voucher:
    """A stored 25% voucher scoped to ``product``."""
    voucher = make_voucher(product_id=product.product_id)
    await voucher_repo.create(voucher)
    return voucher
