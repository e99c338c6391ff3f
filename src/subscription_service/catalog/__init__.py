"""Product catalog."""

from subscription_service.catalog.models import (
    Product,
    ProductCreateRequest,
    ProductUpdateRequest,
)
from subscription_service.catalog.service import ProductService

__all__ = [
    "Product",
    "ProductCreateRequest",
    "ProductUpdateRequest",
    "ProductService",
]
