"""
Stock tests: restock, thresholds, manual movements and alerts.

Every stock change must leave a StockMovement behind, and persisted alerts
must follow the product's stock level.
"""

import pytest

from supplydesk.models import Product, RestockRecord, StockAlert, StockMovement
from supplydesk.services import stock_service
from supplydesk.validation import MAX_INT, ValidationError

from conftest import make_product


class TestRestock:

    def test_restock_increments_quantity(self, client, db_session, director_a_headers, product_a):
        resp = client.patch(
            "/api/director/products/restock",
            json={"productId": product_a.id, "quantity": 25, "notes": "Weekly delivery"},
            headers=director_a_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["quantity"] == 75
        assert resp.json["message"] == "Successfully restocked 25 units"

        db_session.expire_all()
        movement = db_session.query(StockMovement).filter_by(product_id=product_a.id).one()
        assert movement.movement_type == "IN"
        assert movement.reference_type == "RESTOCK"
        assert (movement.previous_stock, movement.new_stock) == (50, 75)

        record = db_session.query(RestockRecord).filter_by(product_id=product_a.id).one()
        assert record.quantity == 25
        assert movement.reference_id == record.id

    def test_restock_by_path(self, client, director_a_headers, product_a):
        resp = client.patch(
            f"/api/director/products/{product_a.id}/restock",
            json={"quantity": 5},
            headers=director_a_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["quantity"] == 55

    @pytest.mark.parametrize("quantity", [0, -5, "abc", None, 1.5])
    def test_invalid_quantity_rejected(self, client, db_session, director_a_headers, product_a, quantity):
        resp = client.patch(
            "/api/director/products/restock",
            json={"productId": product_a.id, "quantity": quantity},
            headers=director_a_headers,
        )
        assert resp.status_code == 400
        db_session.expire_all()
        assert db_session.get(Product, product_a.id).quantity == 50
        assert db_session.query(StockMovement).count() == 0

    def test_oversized_quantity_rejected(self, client, db_session, director_a_headers, product_a):
        resp = client.patch(
            "/api/director/products/restock",
            json={"productId": product_a.id, "quantity": 10**20},
            headers=director_a_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "quantity is out of range"
        db_session.expire_all()
        assert db_session.get(Product, product_a.id).quantity == 50

    def test_restock_cannot_push_quantity_past_integer_range(self, db_session, company_a, director_a):
        product = make_product(db_session, company_a, sku="BIG-1", name="Bulk", quantity=MAX_INT - 1)
        with pytest.raises(ValidationError, match="quantity is out of range"):
            stock_service.restock_product(
                company_id=company_a.id, user_id=director_a.id, product_id=product.id, quantity=2
            )
        db_session.rollback()
        assert db_session.get(Product, product.id).quantity == MAX_INT - 1
        assert db_session.query(StockMovement).count() == 0

    def test_unknown_product(self, client, director_a_headers):
        resp = client.patch(
            "/api/director/products/restock",
            json={"productId": 424242, "quantity": 5},
            headers=director_a_headers,
        )
        assert resp.status_code == 404

    def test_restock_resolves_low_stock_alert(self, db_session, company_a, director_a):
        product = make_product(db_session, company_a, sku="LOW-1", name="Low", quantity=3, min_stock=10)
        stock_service.sync_stock_alerts(product)
        db_session.commit()
        assert db_session.query(StockAlert).filter_by(product_id=product.id, is_resolved=False).count() == 1

        stock_service.restock_product(
            company_id=company_a.id, user_id=director_a.id, product_id=product.id, quantity=20
        )
        alert = db_session.query(StockAlert).filter_by(product_id=product.id).one()
        assert alert.is_resolved is True
        assert alert.resolved_at is not None


class TestThresholds:

    def test_set_thresholds(self, client, director_a_headers, product_a):
        resp = client.patch(
            "/api/director/products/thresholds",
            json={"productId": product_a.id, "minThreshold": 5, "maxThreshold": 200},
            headers=director_a_headers,
        )
        assert resp.status_code == 200
        assert resp.json["minStock"] == 5
        assert resp.json["maxStock"] == 200

    def test_missing_min_threshold(self, client, director_a_headers, product_a):
        resp = client.patch(
            "/api/director/products/thresholds",
            json={"productId": product_a.id},
            headers=director_a_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Product ID and minimum threshold are required"

    @pytest.mark.parametrize("min_threshold,max_threshold", [(-1, None), (20, 20), (20, 5)])
    def test_invalid_threshold_values(self, client, db_session, director_a_headers, product_a,
                                      min_threshold, max_threshold):
        resp = client.patch(
            "/api/director/products/thresholds",
            json={"productId": product_a.id, "minThreshold": min_threshold, "maxThreshold": max_threshold},
            headers=director_a_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid threshold values"
        db_session.expire_all()
        assert db_session.get(Product, product_a.id).min_stock == 10

    def test_raising_threshold_opens_alert(self, db_session, company_a, product_a):
        stock_service.set_thresholds(company_id=company_a.id, product_id=product_a.id, min_threshold=60)
        alert = db_session.query(StockAlert).filter_by(product_id=product_a.id).one()
        assert alert.alert_type == "LOW_STOCK"
        assert alert.threshold_value == 60


class TestManualMovements:

    def test_out_floors_at_zero(self, db_session, company_a, director_a, product_a):
        result = stock_service.adjust_stock(
            company_id=company_a.id, user_id=director_a.id, product_id=product_a.id,
            quantity=80, movement_type="OUT",
        )
        assert result["product"]["quantity"] == 0
        assert result["movement"]["newStock"] == 0

        alert = db_session.query(StockAlert).filter_by(product_id=product_a.id, is_resolved=False).one()
        assert alert.alert_type == "OUT_OF_STOCK"

    def test_low_stock_alert_escalates_to_out_of_stock(self, client, db_session, company_a, director_a_headers):
        product = make_product(db_session, company_a, sku="LOW-2", name="Cable", quantity=5, min_stock=10)

        for qty in (1, 10):
            resp = client.post(
                "/api/director/stock",
                json={"productId": product.id, "quantity": qty, "movementType": "OUT"},
                headers=director_a_headers,
            )
            assert resp.status_code == 200

        db_session.expire_all()
        alert = db_session.query(StockAlert).filter_by(product_id=product.id, is_resolved=False).one()
        assert alert.alert_type == "OUT_OF_STOCK"
        assert alert.message == "Cable is out of stock"
        assert alert.current_stock == 0

    def test_adjustment_sets_absolute_level(self, client, director_a_headers, product_a):
        resp = client.post(
            "/api/director/stock",
            json={"productId": product_a.id, "quantity": 12, "movementType": "ADJUSTMENT"},
            headers=director_a_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["quantity"] == 12
        assert resp.json["movement"]["previousStock"] == 50

    def test_unknown_movement_type(self, db_session, company_a, director_a, product_a):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(
                company_id=company_a.id, user_id=director_a.id, product_id=product_a.id,
                quantity=1, movement_type="TELEPORT",
            )

    def test_movement_history(self, client, db_session, company_a, director_a, director_a_headers, product_a):
        for qty in (5, 7):
            stock_service.restock_product(
                company_id=company_a.id, user_id=director_a.id, product_id=product_a.id, quantity=qty
            )
        resp = client.get(f"/api/director/stock/{product_a.id}/movements", headers=director_a_headers)
        assert resp.status_code == 200
        assert [m["quantity"] for m in resp.json] == [7, 5]


class TestStockAlertsReport:

    def test_severity_and_sorting(self, client, db_session, company_a, director_a_headers):
        make_product(db_session, company_a, sku="OK-1", name="Healthy", quantity=50, min_stock=10)
        make_product(db_session, company_a, sku="MED-1", name="Medium", quantity=8, min_stock=10)
        make_product(db_session, company_a, sku="CRIT-1", name="Critical", quantity=2, min_stock=10)
        make_product(db_session, company_a, sku="ZERO-1", name="Empty", quantity=0, min_stock=10)
        make_product(db_session, company_a, sku="OVER-1", name="Overstock", quantity=500, min_stock=10, max_stock=100)

        resp = client.get("/api/director/stock-alerts", headers=director_a_headers)
        assert resp.status_code == 200

        assert resp.json["count"] == 4
        by_sku = {a["sku"]: a for a in resp.json["alerts"]}
        assert "OK-1" not in by_sku
        assert by_sku["MED-1"]["alertType"] == "LOW_STOCK"
        assert by_sku["MED-1"]["severity"] == "MEDIUM"
        assert by_sku["CRIT-1"]["severity"] == "CRITICAL"
        assert by_sku["ZERO-1"]["alertType"] == "OUT_OF_STOCK"
        assert by_sku["OVER-1"]["alertType"] == "OVERSTOCK"

        severities = [a["severity"] for a in resp.json["alerts"]]
        assert severities == sorted(severities, key=stock_service.SEVERITY_ORDER.get)

    def test_resolve_alert(self, client, db_session, company_a, director_a_headers):
        product = make_product(db_session, company_a, sku="LOW-2", name="Low", quantity=1, min_stock=10)
        alert = stock_service.sync_stock_alerts(product)
        db_session.commit()

        resp = client.patch(f"/api/director/stock-alerts/{alert.id}", headers=director_a_headers)
        assert resp.status_code == 200
        assert resp.json["isResolved"] is True

    def test_stock_listing_alerts_only(self, client, db_session, company_a, director_a_headers, product_a):
        make_product(db_session, company_a, sku="LOW-3", name="Low", quantity=4, min_stock=10)
        resp = client.get("/api/director/stock?alerts=true", headers=director_a_headers)
        assert resp.status_code == 200
        assert [p["sku"] for p in resp.json] == ["LOW-3"]
        assert resp.json[0]["stockStatus"] == "LOW_STOCK"
