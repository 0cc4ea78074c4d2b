"""Pytest configuration and fixtures."""

import os
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("BILLING_API_TOKEN", "test-token")
os.environ.setdefault("BILLING_EMAIL", "owner@example.com")
os.environ.setdefault("BILLING_PASSWORD", "testpassword")

from billing_ledger.models import (  # noqa: E402
    Customer,
    CustomerRef,
    Invoice,
    InvoiceStatus,
    LineItem,
    PaymentMethod,
)

CUSTOMER_A = "cust-a"
CUSTOMER_B = "cust-b"


def make_item(product_id: str, price: str, qty: str, **kwargs) -> LineItem:
    return LineItem(
        product_id=product_id,
        quantity=Decimal(qty),
        unit_price=Decimal(price),
        **kwargs,
    )


def make_invoice(
    total: str,
    payment_method: PaymentMethod = PaymentMethod.DUE,
    customer_id: str | None = CUSTOMER_A,
    invoice_id: str | None = "inv-1",
    items: tuple[LineItem, ...] = (),
) -> Invoice:
    return Invoice(
        id=invoice_id,
        invoice_number="INV-20250110-0001" if invoice_id else None,
        customer=CustomerRef(id=customer_id, name="Asha Traders" if customer_id else "Walk-in Customer"),
        items=items,
        payment_method=payment_method,
        status=InvoiceStatus.FINAL if invoice_id else InvoiceStatus.DRAFT,
        subtotal=Decimal(total),
        total=Decimal(total),
    )


def make_customer(customer_id: str = CUSTOMER_A, amount_due: str = "0") -> Customer:
    return Customer(id=customer_id, name=f"Customer {customer_id}", amount_due=Decimal(amount_due))


@pytest.fixture
def mock_api():
    """Create a mock BillingAPIClient."""
    api = AsyncMock()
    api.create_invoice = AsyncMock()
    api.update_invoice = AsyncMock()
    api.get_customer = AsyncMock()
    api.patch_customer = AsyncMock(return_value={})
    api.get_settings = AsyncMock(return_value={"taxEnabled": True, "taxRate": 10})
    api.list_products = AsyncMock(return_value=[])
    return api


@pytest.fixture
def mock_invoice_response():
    """Mock backend response for a saved due invoice."""
    return {
        "_id": "inv-1",
        "invoiceNumber": "INV-20250110-0001",
        "customer": {"_id": CUSTOMER_A, "name": "Asha Traders"},
        "items": [
            {
                "product": {"_id": "p-rice", "name": "Rice 5kg", "price": 100},
                "quantity": 2,
                "unit": "packet",
                "price": 100,
                "subtotal": 200,
            },
            {
                "product": "p-oil",
                "quantity": 1,
                "unit": "liter",
                "price": 50,
                "subtotal": 50,
                "returnedQuantity": 0,
            },
        ],
        "subtotal": 250,
        "tax": 25,
        "total": 275,
        "status": "final",
        "paymentMethod": "due",
        "dueAmount": 275,
    }


@pytest.fixture
def mock_customer_response():
    """Mock backend customer record."""
    return {
        "_id": CUSTOMER_A,
        "name": "Asha Traders",
        "phoneNumber": "9876543210",
        "address": "12 Market Road",
        "place": "Kochi",
        "amountDue": 0,
    }
