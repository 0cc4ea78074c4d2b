"""Backend client for the billing ledger."""

from billing_ledger.tools.billing_api import (
    AuthenticationError,
    BillingAPIClient,
    BillingAPIError,
    NotFoundError,
    TransportError,
)

__all__ = [
    "BillingAPIClient",
    "BillingAPIError",
    "AuthenticationError",
    "NotFoundError",
    "TransportError",
]
