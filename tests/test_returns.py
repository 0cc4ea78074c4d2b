"""Tests for return validation."""

from decimal import Decimal

import pytest

from billing_ledger.errors import ValidationError
from billing_ledger.models import Product, ReturnItem
from billing_ledger.returns import ownership_errors, validate_return
from conftest import CUSTOMER_B, make_customer, make_invoice, make_item


def _return(product_id: str, qty: str, price: str = "100") -> ReturnItem:
    return ReturnItem(product_id=product_id, return_quantity=Decimal(qty), unit_price=Decimal(price))


@pytest.fixture
def invoice():
    return make_invoice("300", items=(make_item("P1", "100", "3", product_name="Rice 5kg"),))


class TestValidateReturn:
    def test_full_quantity_is_valid_with_warning(self, invoice):
        result = validate_return([_return("P1", "3")], invoice)

        assert result.is_valid
        assert result.errors == []
        assert len(result.warnings) == 1
        assert "Full quantity" in result.warnings[0].message

    def test_over_return_is_an_error(self, invoice):
        result = validate_return([_return("P1", "4")], invoice)

        assert not result.is_valid
        assert len(result.errors) == 1
        assert "Invoice only had 3" in result.errors[0].message

    def test_product_not_on_invoice_is_an_error(self, invoice):
        result = validate_return([_return("P2", "1")], invoice)

        assert not result.is_valid
        assert len(result.errors) == 1
        assert result.errors[0].message == "P2 was not in invoice INV-20250110-0001"

    def test_partial_return_has_no_findings(self, invoice):
        result = validate_return([_return("P1", "2")], invoice)

        assert result.is_valid
        assert result.warnings == []

    def test_no_invoice_always_passes(self):
        result = validate_return([_return("P9", "100")], None)

        assert result.is_valid
        assert result.warnings == []

    def test_product_names_from_catalog(self, invoice):
        products = {"P2": Product(id="P2", name="Sugar 1kg")}

        result = validate_return([_return("P2", "1")], invoice, products)

        assert result.errors[0].message.startswith("Sugar 1kg was not in invoice")
        assert result.errors[0].product_name == "Sugar 1kg"

    def test_earlier_returns_reduce_what_is_returnable(self):
        invoice = make_invoice(
            "300",
            items=(make_item("P1", "100", "3", returned_quantity=Decimal("2")),),
        )

        over = validate_return([_return("P1", "2")], invoice)
        full = validate_return([_return("P1", "1")], invoice)

        assert "already returned: 2" in over.errors[0].message
        assert full.is_valid and len(full.warnings) == 1

    def test_mixed_findings(self, invoice):
        result = validate_return([_return("P1", "3"), _return("P2", "1")], invoice)

        assert len(result.errors) == 1
        assert len(result.warnings) == 1

    def test_raise_for_errors(self, invoice):
        result = validate_return([_return("P1", "4")], invoice)

        with pytest.raises(ValidationError) as exc_info:
            result.raise_for_errors()

        assert exc_info.value.details is result

    def test_warnings_do_not_raise(self, invoice):
        validate_return([_return("P1", "3")], invoice).raise_for_errors()


class TestOwnershipErrors:
    def test_matching_customer(self):
        assert ownership_errors(make_invoice("100"), make_customer()) == []

    def test_other_customers_invoice(self):
        errors = ownership_errors(make_invoice("100"), make_customer(CUSTOMER_B))

        assert "belongs to customer" in errors[0].message

    def test_walk_in_invoice_for_customer_return(self):
        errors = ownership_errors(make_invoice("100", customer_id=None), make_customer())

        assert "walk-in invoice" in errors[0].message

    def test_registered_invoice_for_walk_in_return(self):
        errors = ownership_errors(make_invoice("100"), None)

        assert "registered customer" in errors[0].message

    def test_walk_in_both_sides(self):
        assert ownership_errors(make_invoice("100", customer_id=None), None) == []


class TestReturnOwnership:
    def test_customer_mismatch_reported_with_quantity_errors(self, invoice):
        result = validate_return(
            [_return("P1", "4")], invoice, customer=make_customer(CUSTOMER_B)
        )

        assert len(result.errors) == 2
        assert "belongs to customer" in result.errors[0].message
        assert "Invoice only had 3" in result.errors[1].message

    def test_matching_customer_passes(self, invoice):
        result = validate_return([_return("P1", "1")], invoice, customer=make_customer())

        assert result.is_valid

    def test_walk_in_return_against_registered_invoice(self, invoice):
        result = validate_return([_return("P1", "1")], invoice, walk_in=True)

        assert "registered customer" in result.errors[0].message

    def test_ownership_skipped_without_customer(self, invoice):
        assert validate_return([_return("P1", "1")], invoice).is_valid


class TestRepeatedRows:
    def test_rows_for_one_product_are_summed(self, invoice):
        result = validate_return([_return("P1", "2"), _return("P1", "2")], invoice)

        assert not result.is_valid
        assert len(result.errors) == 1
        assert result.errors[0].message.startswith("Cannot return 4 piece of P1")

    def test_rows_summing_to_full_quantity_warn_once(self, invoice):
        result = validate_return([_return("P1", "1"), _return("P1", "2")], invoice)

        assert result.is_valid
        assert len(result.warnings) == 1
