"""Invoice and return totals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from billing_ledger.config import Settings
from billing_ledger.models import Invoice, LineItem, ReturnItem
from billing_ledger.money import ZERO, round_money, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class TaxConfig:
    """Flat tax applied to an invoice subtotal."""

    enabled: bool = False
    rate_percent: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.rate_percent < 0:
            raise ValueError(f"Tax rate cannot be negative: {self.rate_percent}")

    @classmethod
    def from_settings(cls, settings: Settings) -> TaxConfig:
        return cls(enabled=settings.tax_enabled, rate_percent=settings.tax_rate)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TaxConfig:
        """Build from the backend's ``{"taxEnabled": ..., "taxRate": ...}``."""
        return cls(
            enabled=bool(data.get("taxEnabled", False)),
            rate_percent=to_decimal(data.get("taxRate"), default=Decimal("10")),
        )


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(items: Iterable[LineItem], tax_config: TaxConfig) -> Totals:
    """Derive subtotal, tax and total from line items.

    Each figure is rounded once from the full-precision sums; tax is taken
    from the unrounded subtotal.

    Raises:
        ValueError: A line has a non-positive quantity or a negative price.
    """
    subtotal = ZERO
    for item in items:
        if item.quantity <= 0:
            raise ValueError(
                f"Quantity must be positive for product {item.product_id}: {item.quantity}"
            )
        if item.unit_price < 0:
            raise ValueError(
                f"Price cannot be negative for product {item.product_id}: {item.unit_price}"
            )
        subtotal += item.quantity * item.unit_price

    tax = subtotal * tax_config.rate_percent / HUNDRED if tax_config.enabled else ZERO
    return Totals(
        subtotal=round_money(subtotal),
        tax=round_money(tax),
        total=round_money(subtotal + tax),
    )


def effective_tax_rate(invoice: Invoice) -> Decimal:
    """Tax as a fraction of subtotal on an already-saved invoice."""
    if invoice.tax <= 0 or invoice.subtotal <= 0:
        return ZERO
    return invoice.tax / invoice.subtotal


def compute_return_totals(
    items: Iterable[ReturnItem], invoice: Invoice | None = None
) -> Totals:
    """Totals for a return, taxed at the original invoice's effective rate.

    Returns without an invoice, or against a tax-free one, carry no tax.
    """
    subtotal = ZERO
    for item in items:
        if item.return_quantity <= 0:
            raise ValueError(
                f"Return quantity must be positive for product {item.product_id}"
            )
        subtotal += item.return_quantity * item.unit_price

    rate = effective_tax_rate(invoice) if invoice is not None else ZERO
    tax = subtotal * rate
    return Totals(
        subtotal=round_money(subtotal),
        tax=round_money(tax),
        total=round_money(subtotal + tax),
    )
