"""
Product catalog service.
"""

from typing import Any
from uuid import UUID

import structlog

from subscription_service.catalog.models import (
    Product,
    ProductCreateRequest,
    ProductUpdateRequest,
)
from subscription_service.domain import build_request, utcnow
from subscription_service.repositories.base import ProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Create, read, update and delete catalog products."""

    def __init__(self, products: ProductRepository) -> None:
        self._products = products

    async def create_product(self, request: ProductCreateRequest | dict[str, Any]) -> Product:
        """Create a new product."""
        if isinstance(request, dict):
            request = build_request(ProductCreateRequest, **request)

        product = Product(**request.model_dump())
        await self._products.create(product)

        logger.info(
            "Product created",
            product_id=str(product.product_id),
            price=str(product.price),
            duration_months=product.duration_months,
        )
        return product

    async def get_product(self, product_id: UUID) -> Product:
        """Get a product, raising ProductNotFoundError if absent."""
        return await self._products.get_by_id(product_id)

    async def list_products(self) -> list[Product]:
        return await self._products.list_all()

    async def update_product(
        self, product_id: UUID, request: ProductUpdateRequest | dict[str, Any]
    ) -> Product:
        """Replace a product's attributes."""
        if isinstance(request, dict):
            request = build_request(ProductUpdateRequest, **request)

        product = await self._products.get_by_id(product_id)
        for field, value in request.model_dump().items():
            setattr(product, field, value)
        product.updated_at = utcnow()

        await self._products.update(product)
        logger.info("Product updated", product_id=str(product_id))
        return product

    async def delete_product(self, product_id: UUID) -> None:
        await self._products.delete(product_id)
        logger.info("Product deleted", product_id=str(product_id))
