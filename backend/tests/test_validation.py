"""
Validation helper tests.

Pure functions; no app context needed except where SQLAlchemy column
metadata is read.
"""

from decimal import Decimal

import pytest

from supplydesk.models import Product
from supplydesk.services.products_service import PRODUCT_CREATE_POLICY, PRODUCT_UPDATE_POLICY
from supplydesk.validation import (
    MAX_INT,
    ValidationError,
    enforce_rules_product,
    json_object,
    parse_amount,
    parse_int,
    parse_positive_int,
    parse_text,
    require_fields,
    to_decimal,
    to_number,
    validate_payload,
)


class TestParseInt:

    @pytest.mark.parametrize("value,expected", [(5, 5), ("12", 12), (" 7 ", 7), (3.0, 3), (-2, -2)])
    def test_accepts(self, value, expected):
        assert parse_int(value, "n") == expected

    @pytest.mark.parametrize("value", [True, 2.5, "1.5", "1e3", "", "abc", None, [1]])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_int(value, "n")

    @pytest.mark.parametrize("value", [0, -1, None, ""])
    def test_positive_int(self, value):
        with pytest.raises(ValidationError):
            parse_positive_int(value, "quantity")

    @pytest.mark.parametrize("value", [10**20, -(10**20), MAX_INT + 1, str(10**20)])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValidationError, match="quantity is out of range"):
            parse_positive_int(value, "quantity")

    def test_accepts_largest_sqlite_integer(self):
        assert parse_int(MAX_INT, "n") == MAX_INT


class TestJsonObject:

    def test_missing_body_reads_as_empty(self):
        assert json_object(None) == {}

    def test_passes_dicts_through(self):
        body = {"name": "Tools"}
        assert json_object(body) is body

    @pytest.mark.parametrize("body", [["Tools"], "Tools", 5, True])
    def test_rejects_non_objects(self, body):
        with pytest.raises(ValidationError, match="Invalid JSON payload"):
            json_object(body)


class TestParseText:

    def test_strips(self):
        assert parse_text("  Dana ", "name") == "Dana"

    @pytest.mark.parametrize("value", [123, None, ["a"], {"a": 1}])
    def test_rejects_non_strings(self, value):
        with pytest.raises(ValidationError, match="name must be a string"):
            parse_text(value, "name")

    def test_rejects_blank(self):
        with pytest.raises(ValidationError, match="name cannot be blank"):
            parse_text("   ", "name")


class TestParseAmount:

    def test_quantizes_to_cents(self):
        assert parse_amount("10.005", "amount") == Decimal("10.01")
        assert parse_amount(3, "amount") == Decimal("3.00")

    def test_positive(self):
        with pytest.raises(ValidationError, match="amount must be greater than 0"):
            parse_amount("0", "amount", positive=True)

    @pytest.mark.parametrize("value", [None, "", False])
    def test_required(self, value):
        with pytest.raises(ValidationError, match="amount is required"):
            parse_amount(value, "amount")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", "-1", "10000000000"])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value, "amount")


class TestRequireFields:

    def test_lists_missing_and_blank(self):
        with pytest.raises(ValidationError) as exc:
            require_fields({"name": "  ", "sku": "A1"}, "name", "sku", "price")
        assert str(exc.value) == "Missing required fields: name, price"

    def test_passes(self):
        require_fields({"name": "Widget", "quantity": 0}, "name", "quantity")


class TestValidatePayload:

    def test_create_normalizes_and_aliases(self, app):
        patch = validate_payload(
            model=Product,
            payload={
                "name": " Widget ",
                "sku": "W-1",
                "price": "9.99",
                "quantity": "4",
                "minStock": 2,
                "isActive": False,
            },
            policy=PRODUCT_CREATE_POLICY,
            partial=False,
        )
        assert patch == {
            "name": "Widget",
            "sku": "W-1",
            "price": Decimal("9.99"),
            "quantity": 4,
            "min_stock": 2,
        }

    def test_create_requires_fields(self, app):
        with pytest.raises(ValidationError, match="Missing required fields: price, quantity"):
            validate_payload(
                model=Product, payload={"name": "W", "sku": "S"}, policy=PRODUCT_CREATE_POLICY, partial=False
            )

    def test_update_ignores_quantity(self, app):
        patch = validate_payload(
            model=Product, payload={"quantity": 999, "price": 5}, policy=PRODUCT_UPDATE_POLICY, partial=True
        )
        assert patch == {"price": Decimal("5.00")}

    def test_rejects_null_for_required_column(self, app):
        with pytest.raises(ValidationError, match="name cannot be null"):
            validate_payload(model=Product, payload={"name": None}, policy=PRODUCT_UPDATE_POLICY, partial=True)

    def test_rejects_overlong_string(self, app):
        with pytest.raises(ValidationError, match="sku exceeds max length 64"):
            validate_payload(model=Product, payload={"sku": "X" * 65}, policy=PRODUCT_UPDATE_POLICY, partial=True)

    def test_rejects_non_object(self, app):
        with pytest.raises(ValidationError, match="Invalid JSON payload"):
            validate_payload(model=Product, payload=[1, 2], policy=PRODUCT_UPDATE_POLICY, partial=True)


class TestProductRules:

    @pytest.mark.parametrize(
        "patch,message",
        [
            ({"quantity": -1}, "quantity must be >= 0"),
            ({"min_stock": -5}, "minStock must be >= 0"),
            ({"min_stock": 10, "max_stock": 10}, "maxStock must be greater than minStock"),
        ],
    )
    def test_violations(self, patch, message):
        with pytest.raises(ValidationError, match=message):
            enforce_rules_product(patch)

    def test_valid(self):
        enforce_rules_product({"quantity": 0, "min_stock": 0, "max_stock": 5})


class TestNumbers:

    def test_to_number(self):
        assert to_number(Decimal("12.50")) == 12.5
        assert to_number(None) == 0.0

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal(3.456) == Decimal("3.46")
        assert to_decimal(Decimal("1.5")) == Decimal("1.5")
