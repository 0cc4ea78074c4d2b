"""Data model for invoices, customers, products and returns.

Records are immutable; edits produce new instances with
``dataclasses.replace``. Each record converts to and from the billing
backend's camelCase JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from billing_ledger.money import ZERO, round_money, to_api_number, to_decimal

WALK_IN_CUSTOMER = "Walk-in Customer"


class PaymentMethod(str, Enum):
    """How an invoice is settled."""

    CASH = "cash"
    ONLINE = "online"
    CARD = "card"
    DUE = "due"
    # Legacy values still present on old invoices; read-only, never charged to a balance
    CREDIT = "credit"
    MIXED = "mixed"

    @property
    def is_legacy(self) -> bool:
        return self in (PaymentMethod.CREDIT, PaymentMethod.MIXED)


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    FINAL = "final"

    @classmethod
    def from_api(cls, value: str | None) -> InvoiceStatus:
        # "paid" is a backend-side marker on a final invoice whose due was cleared
        if value in ("final", "paid"):
            return cls.FINAL
        return cls.DRAFT


def _ref_id(value: Any) -> str | None:
    """Extract an id from a bare id or a populated ``{"_id": ...}`` object."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if value in (None, ""):
        return None
    return str(value)


@dataclass(frozen=True)
class CustomerRef:
    """Customer reference stored on an invoice."""

    id: str | None = None
    name: str = WALK_IN_CUSTOMER

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> CustomerRef:
        data = data or {}
        return cls(id=_ref_id(data.get("_id")), name=data.get("name") or WALK_IN_CUSTOMER)

    def to_api(self) -> dict[str, Any]:
        return {"_id": self.id, "name": self.name}


@dataclass(frozen=True)
class LineItem:
    """One product line on an invoice."""

    product_id: str
    quantity: Decimal
    unit_price: Decimal
    unit: str = "piece"
    product_name: str = ""
    returned_quantity: Decimal = ZERO

    @property
    def line_subtotal(self) -> Decimal:
        return round_money(self.quantity * self.unit_price)

    @property
    def returnable_quantity(self) -> Decimal:
        """Quantity not yet returned by earlier returns."""
        return self.quantity - self.returned_quantity

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LineItem:
        product = data.get("product")
        name = product.get("name", "") if isinstance(product, dict) else ""
        return cls(
            product_id=_ref_id(product) or "",
            quantity=to_decimal(data.get("quantity")),
            unit_price=to_decimal(data.get("price")),
            unit=data.get("unit") or "piece",
            product_name=name or data.get("productName", ""),
            returned_quantity=to_decimal(data.get("returnedQuantity")),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "product": self.product_id,
            "quantity": float(self.quantity),
            "unit": self.unit,
            "price": to_api_number(self.unit_price),
            "subtotal": to_api_number(self.line_subtotal),
        }


@dataclass(frozen=True)
class Invoice:
    """An invoice, persisted once ``id`` is assigned by the backend."""

    items: tuple[LineItem, ...] = ()
    customer: CustomerRef = field(default_factory=CustomerRef)
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: InvoiceStatus = InvoiceStatus.DRAFT
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO
    due_amount: Decimal = ZERO
    id: str | None = None
    invoice_number: str | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def is_due_linked(self) -> bool:
        """True when the invoice total is carried on a customer's balance."""
        return self.payment_method is PaymentMethod.DUE and self.customer.id is not None

    @property
    def due_customer_id(self) -> str | None:
        return self.customer.id if self.is_due_linked else None

    @property
    def label(self) -> str:
        return self.invoice_number or self.id or "(unsaved)"

    def find_item(self, product_id: str) -> LineItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Invoice:
        return cls(
            id=_ref_id(data.get("_id")),
            invoice_number=data.get("invoiceNumber"),
            customer=CustomerRef.from_api(data.get("customer")),
            items=tuple(LineItem.from_api(item) for item in data.get("items", [])),
            subtotal=to_decimal(data.get("subtotal")),
            tax=to_decimal(data.get("tax")),
            total=to_decimal(data.get("total")),
            status=InvoiceStatus.from_api(data.get("status")),
            payment_method=PaymentMethod(data.get("paymentMethod") or "cash"),
            due_amount=to_decimal(data.get("dueAmount")),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "customer": self.customer.to_api(),
            "items": [item.to_api() for item in self.items],
            "subtotal": to_api_number(self.subtotal),
            "tax": to_api_number(self.tax),
            "total": to_api_number(self.total),
            "status": self.status.value,
            "paymentMethod": self.payment_method.value,
            "dueAmount": to_api_number(self.due_amount),
        }


@dataclass(frozen=True)
class Customer:
    """A customer with a signed running balance (negative = advance)."""

    id: str
    name: str
    amount_due: Decimal = ZERO
    phone_number: str = ""
    address: str = ""
    place: str = ""

    @property
    def ref(self) -> CustomerRef:
        return CustomerRef(id=self.id, name=self.name)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Customer:
        return cls(
            id=_ref_id(data.get("_id")) or "",
            name=data.get("name", ""),
            amount_due=to_decimal(data.get("amountDue")),
            phone_number=data.get("phoneNumber", ""),
            address=data.get("address", ""),
            place=data.get("place", ""),
        )


@dataclass(frozen=True)
class Product:
    """Catalog product, used for names and stock checks."""

    id: str
    name: str
    price: Decimal = ZERO
    stock: Decimal = ZERO
    unit: str = "piece"
    is_stock_required: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Product:
        return cls(
            id=_ref_id(data.get("_id")) or "",
            name=data.get("name", ""),
            price=to_decimal(data.get("price")),
            stock=to_decimal(data.get("stock")),
            unit=data.get("unit") or "piece",
            is_stock_required=bool(data.get("isStockRequired", False)),
        )


@dataclass(frozen=True)
class ReturnItem:
    """A product being brought back."""

    product_id: str
    return_quantity: Decimal
    unit_price: Decimal
    product_name: str = ""
    unit: str = "piece"


@dataclass(frozen=True)
class ReturnRequest:
    """A proposed customer return, optionally tied to an invoice."""

    items: tuple[ReturnItem, ...]
    customer: Customer | None = None
    invoice: Invoice | None = None
    reason: str = ""


def index_products(products: list[Product] | None) -> dict[str, Product]:
    """Build the product lookup passed to validators and the stock planner."""
    return {product.id: product for product in products or []}
