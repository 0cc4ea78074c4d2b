"""Invoice save, return and payment workflows against the billing backend.

Each workflow validates and computes everything locally first, then talks to
the backend in strict program order. Nothing is retried here and nothing is
compensated automatically: a ledger write that fails after an earlier write
of the same save succeeded is raised as ``ReconciliationConflict``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from billing_ledger.errors import ReconciliationConflict
from billing_ledger.invoice_state import InvoiceEditor, SaveAction
from billing_ledger.models import Customer, Invoice, Product, ReturnRequest, index_products
from billing_ledger.reconciliation import (
    BalanceAdjustment,
    LedgerEntry,
    apply_adjustment,
    payment_adjustment,
    plan_invoice_save,
    return_adjustment,
)
from billing_ledger.returns import ReturnValidation, validate_return
from billing_ledger.stock import (
    StockMovement,
    check_availability,
    edit_movements,
    return_movements,
    sale_movements,
)
from billing_ledger.tools.billing_api import BillingAPIClient, BillingAPIError
from billing_ledger.totals import TaxConfig, Totals, compute_return_totals

logger = structlog.get_logger(__name__)


@dataclass
class SaveResult:
    """Outcome of one save press."""

    action: SaveAction
    invoice: Invoice
    ledger_entries: list[LedgerEntry] = field(default_factory=list)


@dataclass
class ReturnResult:
    """Outcome of a recorded return."""

    totals: Totals
    validation: ReturnValidation
    stock_movements: list[StockMovement] = field(default_factory=list)
    ledger_entry: LedgerEntry | None = None

    @property
    def new_amount_due(self) -> Decimal | None:
        return self.ledger_entry.balance_after if self.ledger_entry else None


class InvoiceWorkflow:
    """Drives the engine against the billing backend."""

    def __init__(self, api_client: BillingAPIClient):
        self._api = api_client
        self._logger = logger.bind(component="invoice_workflow")

    async def load_tax_config(self) -> TaxConfig:
        """Fetch the account's tax switch and rate from the backend."""
        return TaxConfig.from_api(await self._api.get_settings())

    async def load_products(self) -> dict[str, Product]:
        """Fetch the catalog as a lookup by product id."""
        return index_products([Product.from_api(p) for p in await self._api.list_products()])

    async def new_editor(self, invoice: Invoice | None = None) -> InvoiceEditor:
        """Editor configured with the backend's tax settings."""
        return InvoiceEditor(invoice, tax_config=await self.load_tax_config())

    async def save(
        self,
        editor: InvoiceEditor,
        dirty: bool = False,
        products: Mapping[str, Product] | None = None,
    ) -> SaveResult:
        """Handle a save press on the editor's invoice.

        Creates a draft, enters edit mode on a final invoice, or commits an
        edit. Only create and commit reach the backend.

        Args:
            editor: The invoice being worked on.
            dirty: Whether the caller changed the invoice since it was saved.
            products: Catalog lookup; when given, stock is checked first.

        Raises:
            ValidationError: Invoice incomplete or stock insufficient.
            ReconciliationConflict: A later ledger write failed after an
                earlier one succeeded.
            BillingAPIError: Any backend failure before a ledger write landed.
        """
        action = editor.request_save(dirty)
        if action in (SaveAction.ENTER_EDIT, SaveAction.NO_CHANGES):
            return SaveResult(action=action, invoice=editor.invoice)

        prior = editor.prior
        next_invoice = editor.build_next()

        if products is not None:
            if prior is None:
                movements = sale_movements(next_invoice.items)
            else:
                movements = edit_movements(prior.items, next_invoice.items)
            check_availability(movements, products)

        if prior is None:
            data = await self._api.create_invoice(next_invoice.to_api())
        else:
            data = await self._api.update_invoice(str(prior.id), next_invoice.to_api())

        persisted = Invoice.from_api(data)
        editor.mark_saved(persisted)
        self._logger.info(
            "invoice_saved",
            action=action.value,
            invoice_id=persisted.id,
            invoice_number=persisted.invoice_number,
            payment_method=persisted.payment_method.value,
            total=persisted.total,
        )

        adjustments = plan_invoice_save(prior, persisted)
        entries = await self._apply_in_order(adjustments, persisted)
        return SaveResult(action=action, invoice=persisted, ledger_entries=entries)

    async def _apply_one(
        self, adjustment: BalanceAdjustment, customer: Customer | None = None
    ) -> LedgerEntry:
        if customer is None:
            customer = Customer.from_api(await self._api.get_customer(adjustment.customer_id))
        entry = apply_adjustment(customer, adjustment)
        await self._api.patch_customer(adjustment.customer_id, entry.balance_after)
        self._logger.info(
            "balance_adjusted",
            customer_id=entry.customer_id,
            kind=entry.kind.value,
            delta=entry.delta,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
        )
        return entry

    async def _apply_in_order(
        self, adjustments: list[BalanceAdjustment], invoice: Invoice
    ) -> list[LedgerEntry]:
        applied: list[LedgerEntry] = []
        for adjustment in adjustments:
            try:
                entry = await self._apply_one(adjustment)
            except BillingAPIError as e:
                if not applied:
                    raise
                self._logger.error(
                    "reconciliation_conflict",
                    invoice_id=invoice.id,
                    failed_customer_id=adjustment.customer_id,
                    failed_delta=adjustment.delta,
                    applied=[entry.customer_id for entry in applied],
                    error=str(e),
                )
                raise ReconciliationConflict(
                    f"Balance of customer {adjustment.customer_id} was not updated by "
                    f"{adjustment.delta} after {len(applied)} earlier update(s) succeeded",
                    applied=applied,
                    failed=adjustment,
                    invoice=invoice,
                ) from e
            applied.append(entry)
        return applied

    async def record_return(
        self,
        request: ReturnRequest,
        products: Mapping[str, Product] | None = None,
    ) -> ReturnResult:
        """Validate a return and credit a linked customer's balance.

        Raises:
            ValidationError: The return does not match its invoice.
            BillingAPIError: Backend failure reading or writing the customer.
        """
        invoice = request.invoice
        validation = validate_return(
            request.items,
            invoice,
            products,
            customer=request.customer,
            walk_in=request.customer is None,
        )
        validation.raise_for_errors()

        totals = compute_return_totals(request.items, invoice)
        result = ReturnResult(
            totals=totals,
            validation=validation,
            stock_movements=return_movements(request.items),
        )
        if request.customer is None:
            return result

        customer = Customer.from_api(await self._api.get_customer(request.customer.id))
        entry = apply_adjustment(customer, return_adjustment(customer, totals.total, invoice))
        if entry.delta != 0:
            await self._api.patch_customer(customer.id, entry.balance_after)
        self._logger.info(
            "return_recorded",
            customer_id=customer.id,
            invoice_id=invoice.id if invoice else None,
            return_total=totals.total,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
            warnings=len(validation.warnings),
        )
        result.ledger_entry = entry
        return result

    async def record_payment(self, customer_id: str, amount: Decimal) -> LedgerEntry:
        """Reduce a customer's balance by a payment; may leave an advance."""
        customer = Customer.from_api(await self._api.get_customer(customer_id))
        adjustment = payment_adjustment(customer, amount)
        return await self._apply_one(adjustment, customer)
