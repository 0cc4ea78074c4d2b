"""Balance reconciliation for due invoices, returns and payments.

Everything here is pure: callers pass the customer snapshot they read from
the backend and receive the new absolute ``amountDue`` to write back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from billing_ledger.models import Customer, Invoice
from billing_ledger.money import ZERO, round_money


class AdjustmentKind(str, Enum):
    """Why a customer's balance moved."""

    PURCHASE = "purchase"
    PURCHASE_EDIT = "purchase_edit"
    REVERSAL = "reversal"
    RETURN = "return"
    PAYMENT = "payment"


@dataclass(frozen=True)
class BalanceAdjustment:
    """A signed change to one customer's amount due."""

    customer_id: str
    delta: Decimal
    kind: AdjustmentKind
    invoice_id: str | None = None
    invoice_number: str | None = None

    @property
    def description(self) -> str:
        label = self.invoice_number or self.invoice_id
        ref = f" for invoice {label}" if label else ""
        return {
            AdjustmentKind.PURCHASE: f"Purchase{ref}",
            AdjustmentKind.PURCHASE_EDIT: f"Edited purchase{ref}",
            AdjustmentKind.REVERSAL: f"Reversed purchase{ref}",
            AdjustmentKind.RETURN: f"Product return{ref}",
            AdjustmentKind.PAYMENT: "Payment",
        }[self.kind]


@dataclass(frozen=True)
class LedgerEntry:
    """One applied balance change, with the values either side of it."""

    customer_id: str
    kind: AdjustmentKind
    delta: Decimal
    balance_before: Decimal
    balance_after: Decimal
    invoice_id: str | None = None
    invoice_number: str | None = None
    description: str = ""


def _adjustment(
    customer_id: str, delta: Decimal, kind: AdjustmentKind, invoice: Invoice
) -> BalanceAdjustment:
    return BalanceAdjustment(
        customer_id=customer_id,
        delta=delta,
        kind=kind,
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
    )


def plan_invoice_save(prior: Invoice | None, next: Invoice) -> list[BalanceAdjustment]:
    """Balance changes implied by saving ``next`` over ``prior``.

    The list is ordered and must be applied in order: a reversal on the old
    customer always precedes the charge on the new one. Edits that stay on
    the same due customer produce a single net adjustment.
    """
    next_customer = next.due_customer_id

    if prior is None:
        if next_customer is None:
            return []
        return [_adjustment(next_customer, next.total, AdjustmentKind.PURCHASE, next)]

    prior_customer = prior.due_customer_id

    if prior_customer is not None and prior_customer == next_customer:
        delta = next.total - prior.total
        if delta == 0:
            return []
        return [_adjustment(next_customer, delta, AdjustmentKind.PURCHASE_EDIT, next)]

    adjustments: list[BalanceAdjustment] = []
    if prior_customer is not None:
        adjustments.append(
            _adjustment(prior_customer, -prior.total, AdjustmentKind.REVERSAL, prior)
        )
    if next_customer is not None:
        adjustments.append(
            _adjustment(next_customer, next.total, AdjustmentKind.PURCHASE, next)
        )
    return adjustments


def apply_adjustment(customer: Customer, adjustment: BalanceAdjustment) -> LedgerEntry:
    """Apply an adjustment to a customer snapshot.

    Returns:
        The ledger entry; ``balance_after`` is the value to write back.
    """
    if customer.id != adjustment.customer_id:
        raise ValueError(
            f"Adjustment for customer {adjustment.customer_id} applied to {customer.id}"
        )
    before = customer.amount_due
    after = round_money(before + adjustment.delta)
    return LedgerEntry(
        customer_id=customer.id,
        kind=adjustment.kind,
        delta=adjustment.delta,
        balance_before=before,
        balance_after=after,
        invoice_id=adjustment.invoice_id,
        invoice_number=adjustment.invoice_number,
        description=adjustment.description,
    )


def apply_return(customer: Customer, return_total: Decimal) -> Decimal:
    """New amount due after a return, never below zero.

    A return absorbs at most the outstanding due; any excess is not turned
    into store credit.
    """
    if return_total < 0:
        raise ValueError(f"Return total cannot be negative: {return_total}")
    return max(ZERO, round_money(customer.amount_due - return_total))


def return_adjustment(
    customer: Customer, return_total: Decimal, invoice: Invoice | None = None
) -> BalanceAdjustment:
    """The clamped return expressed as an adjustment."""
    new_due = apply_return(customer, return_total)
    return BalanceAdjustment(
        customer_id=customer.id,
        delta=new_due - customer.amount_due,
        kind=AdjustmentKind.RETURN,
        invoice_id=invoice.id if invoice else None,
        invoice_number=invoice.invoice_number if invoice else None,
    )


def apply_payment(customer: Customer, amount: Decimal) -> Decimal:
    """New amount due after a payment; may go negative as an advance."""
    if amount <= 0:
        raise ValueError("Payment amount must be greater than 0")
    return round_money(customer.amount_due - amount)


def payment_adjustment(customer: Customer, amount: Decimal) -> BalanceAdjustment:
    new_due = apply_payment(customer, amount)
    return BalanceAdjustment(
        customer_id=customer.id,
        delta=new_due - customer.amount_due,
        kind=AdjustmentKind.PAYMENT,
    )
