"""Engine exceptions.

Transport failures from the billing backend live with the client in
``billing_ledger.tools.billing_api`` and are propagated unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from billing_ledger.models import Invoice
    from billing_ledger.reconciliation import BalanceAdjustment, LedgerEntry


class BillingError(Exception):
    """Base exception for engine errors."""

    pass


class ValidationError(BillingError):
    """Input rejected before anything was sent to the backend."""

    def __init__(self, messages: list[str] | str, details: Any = None):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        self.details = details
        super().__init__("; ".join(self.messages))


class ReconciliationConflict(BillingError):
    """A ledger write failed after an earlier write of the same save succeeded.

    The entries in ``applied`` are already persisted. Callers must reconcile
    the ``failed`` adjustment by hand rather than re-submit the save.
    """

    def __init__(
        self,
        message: str,
        applied: list[LedgerEntry],
        failed: BalanceAdjustment,
        invoice: Invoice | None = None,
    ):
        super().__init__(message)
        self.applied = applied
        self.failed = failed
        self.invoice = invoice
