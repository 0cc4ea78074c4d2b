"""Stock movements implied by sales, invoice edits and returns."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from billing_ledger.errors import ValidationError
from billing_ledger.models import LineItem, Product, ReturnItem
from billing_ledger.money import ZERO


@dataclass(frozen=True)
class StockMovement:
    """Signed quantity change for one product (negative = leaves stock)."""

    product_id: str
    quantity: Decimal


def _net(changes: Iterable[tuple[str, Decimal]]) -> list[StockMovement]:
    totals: dict[str, Decimal] = {}
    for product_id, quantity in changes:
        totals[product_id] = totals.get(product_id, ZERO) + quantity
    return [StockMovement(pid, qty) for pid, qty in totals.items() if qty != 0]


def sale_movements(items: Iterable[LineItem]) -> list[StockMovement]:
    return _net((item.product_id, -item.quantity) for item in items)


def edit_movements(
    prior_items: Iterable[LineItem], next_items: Iterable[LineItem]
) -> list[StockMovement]:
    """Restore what the prior invoice sold and deduct what the edit sells."""
    restored = [(item.product_id, item.quantity) for item in prior_items]
    deducted = [(item.product_id, -item.quantity) for item in next_items]
    return _net(restored + deducted)


def return_movements(items: Iterable[ReturnItem]) -> list[StockMovement]:
    return _net((item.product_id, item.return_quantity) for item in items)


def check_availability(
    movements: Iterable[StockMovement], products: Mapping[str, Product]
) -> None:
    """Reject deductions that exceed stock on stock-tracked products.

    Products missing from ``products`` or not stock-tracked are skipped.

    Raises:
        ValidationError: Naming each product that would go negative.
    """
    problems: list[str] = []
    for movement in movements:
        product = products.get(movement.product_id)
        if product is None or not product.is_stock_required:
            continue
        if product.stock + movement.quantity < 0:
            problems.append(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.stock} {product.unit}"
            )
    if problems:
        raise ValidationError(problems)
