"""Billing Ledger - invoice lifecycle and customer balance reconciliation."""

__version__ = "0.1.0"

from billing_ledger.config import configure_logging, get_settings
from billing_ledger.errors import BillingError, ReconciliationConflict, ValidationError
from billing_ledger.invoice_state import InvoiceEditor, SaveAction, validate_invoice
from billing_ledger.models import (
    Customer,
    CustomerRef,
    Invoice,
    InvoiceStatus,
    LineItem,
    PaymentMethod,
    Product,
    ReturnItem,
    ReturnRequest,
)
from billing_ledger.reconciliation import (
    BalanceAdjustment,
    LedgerEntry,
    apply_adjustment,
    apply_payment,
    apply_return,
    plan_invoice_save,
)
from billing_ledger.returns import ReturnValidation, validate_return
from billing_ledger.tools import BillingAPIClient, BillingAPIError, TransportError
from billing_ledger.totals import TaxConfig, Totals, compute_return_totals, compute_totals
from billing_ledger.workflow import InvoiceWorkflow, ReturnResult, SaveResult

__all__ = [
    # Version
    "__version__",
    # Models
    "Customer",
    "CustomerRef",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "PaymentMethod",
    "Product",
    "ReturnItem",
    "ReturnRequest",
    # Totals
    "TaxConfig",
    "Totals",
    "compute_totals",
    "compute_return_totals",
    # Lifecycle
    "InvoiceEditor",
    "SaveAction",
    "validate_invoice",
    # Reconciliation
    "BalanceAdjustment",
    "LedgerEntry",
    "plan_invoice_save",
    "apply_adjustment",
    "apply_return",
    "apply_payment",
    # Returns
    "ReturnValidation",
    "validate_return",
    # Workflow & backend
    "InvoiceWorkflow",
    "SaveResult",
    "ReturnResult",
    "BillingAPIClient",
    "BillingAPIError",
    "TransportError",
    # Errors
    "BillingError",
    "ValidationError",
    "ReconciliationConflict",
    # Config
    "get_settings",
    "configure_logging",
]
