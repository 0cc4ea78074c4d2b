"""Invoice lifecycle: draft, final, and the two-step edit of a final invoice.

Re-saving a final invoice moves money on a customer's balance, so a save on
a final invoice first only enters edit mode. The edit is committed by a
later save made with ``dirty=True``.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Any

import structlog

from billing_ledger.errors import ValidationError
from billing_ledger.models import Invoice, InvoiceStatus, PaymentMethod
from billing_ledger.money import ZERO
from billing_ledger.totals import TaxConfig, compute_totals

logger = structlog.get_logger(__name__)


class SaveAction(str, Enum):
    """Outcome of a save request."""

    CREATE = "create"
    ENTER_EDIT = "enter_edit"
    COMMIT_EDIT = "commit_edit"
    NO_CHANGES = "no_changes"


def validate_invoice(invoice: Invoice) -> None:
    """Check an invoice can be sent to the backend.

    Raises:
        ValidationError: Listing every problem found.
    """
    problems: list[str] = []
    if not invoice.items:
        problems.append("Please add at least one item")
    elif any(not item.product_id or item.quantity <= 0 for item in invoice.items):
        problems.append("Please complete all item details")
    if invoice.payment_method is PaymentMethod.DUE and invoice.customer.id is None:
        problems.append("Due payment requires a registered customer")
    if invoice.payment_method.is_legacy:
        problems.append(
            f'Payment method "{invoice.payment_method.value}" is no longer accepted; '
            "choose cash, online, card or due"
        )
    if problems:
        raise ValidationError(problems)


def finalize(invoice: Invoice, tax_config: TaxConfig) -> Invoice:
    """Return the invoice with totals and due amount derived, marked final."""
    totals = compute_totals(invoice.items, tax_config)
    due_linked = invoice.payment_method is PaymentMethod.DUE and invoice.customer.id is not None
    return replace(
        invoice,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        due_amount=totals.total if due_linked else ZERO,
        status=InvoiceStatus.FINAL,
    )


class InvoiceEditor:
    """Holds a working invoice and the snapshot it was last saved as."""

    def __init__(self, invoice: Invoice | None = None, tax_config: TaxConfig | None = None):
        self._tax_config = tax_config or TaxConfig()
        invoice = invoice or Invoice()
        self._prior: Invoice | None = invoice if invoice.is_persisted else None
        self._invoice = invoice
        self._editing = False
        self._logger = logger.bind(component="invoice_editor")

    @property
    def invoice(self) -> Invoice:
        return self._invoice

    @property
    def prior(self) -> Invoice | None:
        """The invoice as last persisted, or None before the first save."""
        return self._prior

    @property
    def status(self) -> InvoiceStatus:
        return InvoiceStatus.FINAL if self._prior is not None else InvoiceStatus.DRAFT

    @property
    def is_editing(self) -> bool:
        return self._editing

    def update(self, **changes: Any) -> Invoice:
        """Replace fields on the working invoice and recompute its totals."""
        if "items" in changes:
            changes["items"] = tuple(changes["items"])
        updated = replace(self._invoice, **changes)
        # Incomplete lines keep the previous totals until they are filled in
        if updated.items and all(
            item.quantity > 0 and item.unit_price >= 0 for item in updated.items
        ):
            totals = compute_totals(updated.items, self._tax_config)
            updated = replace(
                updated, subtotal=totals.subtotal, tax=totals.tax, total=totals.total
            )
        self._invoice = updated
        return updated

    def request_save(self, dirty: bool) -> SaveAction:
        """Decide what a save press means in the current state.

        Raises:
            ValidationError: The invoice cannot be created or committed.
        """
        if self._prior is None:
            validate_invoice(self._invoice)
            return SaveAction.CREATE

        if not self._editing:
            self._editing = True
            self._logger.info("edit_mode_entered", invoice_id=self._prior.id)
            return SaveAction.ENTER_EDIT

        if not dirty:
            return SaveAction.NO_CHANGES

        validate_invoice(self._invoice)
        return SaveAction.COMMIT_EDIT

    def build_next(self) -> Invoice:
        """The full next-state invoice to send to the backend."""
        next_invoice = finalize(self._invoice, self._tax_config)
        if self._prior is not None:
            next_invoice = replace(
                next_invoice, id=self._prior.id, invoice_number=self._prior.invoice_number
            )
        return next_invoice

    def mark_saved(self, persisted: Invoice) -> None:
        """Record the backend's copy as the new prior snapshot."""
        if persisted.id is None:
            raise ValueError("Persisted invoice has no id")
        self._prior = persisted
        self._invoice = persisted
        self._editing = False

    def cancel_edit(self) -> None:
        """Leave edit mode and drop unsaved changes."""
        if self._prior is not None:
            self._invoice = self._prior
        self._editing = False
