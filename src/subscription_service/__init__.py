"""
Subscription service core.

Products, discount vouchers and user subscriptions with a small lifecycle
(active, paused, cancelled), trial periods and an append-only audit trail of
state changes.
"""

__version__ = "1.0.0"
