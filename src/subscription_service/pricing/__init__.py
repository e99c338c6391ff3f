"""Subscription pricing engine."""

from subscription_service.pricing.engine import PricingResult, apply_discount, compute_pricing

__all__ = ["PricingResult", "apply_discount", "compute_pricing"]
