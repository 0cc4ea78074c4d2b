"""Validation of a proposed return against the invoice it refers to."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from billing_ledger.errors import ValidationError
from billing_ledger.models import Customer, Invoice, Product, ReturnItem
from billing_ledger.money import ZERO


@dataclass(frozen=True)
class Finding:
    """One validation message about a returned product."""

    message: str
    product_id: str | None = None
    product_name: str = ""


@dataclass(frozen=True)
class ReturnValidation:
    """Errors block a return; warnings are informational."""

    errors: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError([e.message for e in self.errors], details=self)


def _product_name(
    item: ReturnItem, products: Mapping[str, Product] | None
) -> str:
    if item.product_name:
        return item.product_name
    if products and item.product_id in products:
        return products[item.product_id].name
    return item.product_id


def ownership_errors(invoice: Invoice, customer: Customer | None) -> list[Finding]:
    """Check the invoice belongs to whoever the return is credited to.

    ``customer`` is None for a walk-in return.
    """
    label = invoice.label
    if customer is None:
        if invoice.customer.id is not None:
            return [
                Finding(
                    f'Invoice {label} belongs to registered customer "{invoice.customer.name}". '
                    "Link the return to that customer so their account is credited."
                )
            ]
        return []
    if invoice.customer.id is None:
        return [
            Finding(
                f"Invoice {label} is a walk-in invoice and cannot be linked to "
                f'customer "{customer.name}".'
            )
        ]
    if invoice.customer.id != customer.id:
        return [
            Finding(
                f'Invoice {label} belongs to customer "{invoice.customer.name}", '
                f'not "{customer.name}".'
            )
        ]
    return []


def validate_return(
    items: Iterable[ReturnItem],
    invoice: Invoice | None,
    products: Mapping[str, Product] | None = None,
    customer: Customer | None = None,
    *,
    walk_in: bool = False,
) -> ReturnValidation:
    """Check returned quantities against what the invoice sold.

    Rows for the same product are summed before comparing. Quantities
    already brought back by earlier returns are not returnable again. A
    return without an invoice always passes.

    Args:
        items: Products being returned.
        invoice: The invoice the return refers to, if any.
        products: Catalog lookup by product id, used for names in messages.
        customer: Customer credited by the return; adds ownership checks.
        walk_in: The return is credited to nobody; adds ownership checks.
    """
    if invoice is None:
        return ReturnValidation()

    errors: list[Finding] = []
    if customer is not None or walk_in:
        errors.extend(ownership_errors(invoice, customer))
    warnings: list[Finding] = []

    requested: dict[str, Decimal] = {}
    names: dict[str, str] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, ZERO) + item.return_quantity
        names.setdefault(item.product_id, _product_name(item, products))

    for product_id, quantity in requested.items():
        name = names[product_id]
        line = invoice.find_item(product_id)
        if line is None:
            errors.append(
                Finding(f"{name} was not in invoice {invoice.label}", product_id, name)
            )
            continue

        remaining = line.returnable_quantity
        if quantity > remaining:
            if line.returned_quantity > 0:
                message = (
                    f"Cannot return {quantity} {line.unit} of {name}. "
                    f"Purchased: {line.quantity}, already returned: {line.returned_quantity}, "
                    f"max returnable: {remaining}."
                )
            else:
                message = (
                    f"Cannot return {quantity} {line.unit} of {name}. "
                    f"Invoice only had {line.quantity} {line.unit}."
                )
            errors.append(Finding(message, product_id, name))
        elif quantity == remaining:
            warnings.append(
                Finding(
                    f"Full quantity of {name} is being returned ({remaining} {line.unit})",
                    product_id,
                    name,
                )
            )

    return ReturnValidation(errors=errors, warnings=warnings)
