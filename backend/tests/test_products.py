"""
Product tests: director CRUD, analytics, the user's orderable catalogue and
the user inventory that shipped orders feed.
"""

from decimal import Decimal

import pytest

from supplydesk.models import OrderRequest, OrderRequestItem, Product, StockAlert, UserInventory

from conftest import make_product

NEW_PRODUCT = {"name": "Gadget", "sku": "ACME-002", "price": "15.50", "quantity": 30}


def _order_with_item(db_session, user, product, status, quantity):
    order = OrderRequest(
        user_id=user.id,
        company_id=user.company_id,
        status=status,
        total_amount=product.price * quantity,
    )
    db_session.add(order)
    db_session.flush()
    db_session.add(OrderRequestItem(
        order_request_id=order.id,
        product_id=product.id,
        quantity=quantity,
        unit_price=product.price,
        total_price=product.price * quantity,
    ))
    db_session.commit()
    return order


class TestCreateProduct:

    def test_create(self, client, db_session, director_a, director_a_headers):
        resp = client.post("/api/director/products", json=NEW_PRODUCT, headers=director_a_headers)
        assert resp.status_code == 201
        assert resp.json["price"] == 15.5
        assert resp.json["minStock"] == 10
        assert resp.json["companyId"] == director_a.company_id
        assert resp.json["createdById"] == director_a.id
        assert db_session.query(StockAlert).count() == 0

    def test_low_initial_quantity_opens_alert(self, client, db_session, director_a_headers):
        body = {**NEW_PRODUCT, "quantity": 3}
        resp = client.post("/api/director/products", json=body, headers=director_a_headers)
        assert resp.status_code == 201
        alert = db_session.query(StockAlert).one()
        assert alert.alert_type == "LOW_STOCK"
        assert alert.current_stock == 3

    def test_duplicate_sku_within_company(self, client, director_a_headers, product_a):
        body = {**NEW_PRODUCT, "sku": product_a.sku}
        resp = client.post("/api/director/products", json=body, headers=director_a_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Product with this SKU already exists"

    def test_same_sku_in_other_company(self, client, director_b_headers, product_a):
        body = {**NEW_PRODUCT, "sku": product_a.sku}
        resp = client.post("/api/director/products", json=body, headers=director_b_headers)
        assert resp.status_code == 201

    @pytest.mark.parametrize(
        "override",
        [
            {"price": "-1"},
            {"quantity": -5},
            {"quantity": "1.5"},
            {"minStock": 10, "maxStock": 5},
            {"categoryId": 9999},
            {"name": ""},
        ],
    )
    def test_invalid(self, client, db_session, director_a_headers, override):
        resp = client.post(
            "/api/director/products", json={**NEW_PRODUCT, **override}, headers=director_a_headers
        )
        assert resp.status_code == 400
        assert db_session.query(Product).count() == 0


class TestUpdateDeleteProduct:

    def test_update_does_not_touch_quantity(self, client, db_session, director_a_headers, product_a):
        resp = client.put(
            f"/api/director/products/{product_a.id}",
            json={"name": "Widget A+", "price": 12, "quantity": 999},
            headers=director_a_headers,
        )
        assert resp.status_code == 200
        assert resp.json["name"] == "Widget A+"
        assert resp.json["price"] == 12.0
        assert resp.json["quantity"] == 50

    def test_raising_min_stock_opens_alert(self, client, db_session, director_a_headers, product_a):
        client.put(
            f"/api/director/products/{product_a.id}", json={"minStock": 60}, headers=director_a_headers
        )
        assert db_session.query(StockAlert).filter_by(product_id=product_a.id).count() == 1

    def test_sku_conflict_on_update(self, client, db_session, director_a_headers, company_a, product_a):
        other = make_product(db_session, company_a, sku="ACME-009", name="Other")
        resp = client.put(
            f"/api/director/products/{other.id}", json={"sku": product_a.sku}, headers=director_a_headers
        )
        assert resp.status_code == 400

    def test_get_includes_status(self, client, director_a_headers, product_a):
        resp = client.get(f"/api/director/products/{product_a.id}", headers=director_a_headers)
        assert resp.status_code == 200
        assert resp.json["stockStatus"] == "IN_STOCK"
        assert resp.json["stockAlerts"] == []

    def test_soft_delete(self, client, db_session, director_a_headers, product_a):
        resp = client.delete(f"/api/director/products/{product_a.id}", headers=director_a_headers)
        assert resp.status_code == 200

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).is_active is False

        listing = client.get("/api/director/products", headers=director_a_headers)
        assert listing.json == []


class TestListingAndAnalytics:

    def test_listing_counts_sales(self, client, db_session, director_a_headers, user_a, product_a):
        _order_with_item(db_session, user_a, product_a, "APPROVED", 2)
        _order_with_item(db_session, user_a, product_a, "PENDING", 7)

        resp = client.get("/api/director/products", headers=director_a_headers)
        row = resp.json[0]
        assert row["totalSales"] == 2
        assert row["_count"]["orderItems"] == 2
        assert row["stockStatus"] == "IN_STOCK"
        assert row["hasActiveAlerts"] is False

    def test_analytics(self, client, db_session, director_a_headers, user_a, user_b, product_a, product_b):
        _order_with_item(db_session, user_a, product_a, "SHIPPED", 3)
        _order_with_item(db_session, user_a, product_a, "REJECTED", 5)
        _order_with_item(db_session, user_b, product_b, "APPROVED", 1)

        body = client.get("/api/director/products/analytics", headers=director_a_headers).json
        assert len(body["productSales"]) == 1
        assert body["productSales"][0]["productId"] == product_a.id
        assert body["productSales"][0]["totalQuantity"] == 3
        assert body["summary"]["totalRevenue"] == 30.0
        assert body["creditSales"] == []


class TestUserCatalogue:

    def test_only_in_stock_company_products(self, client, db_session, user_a_headers, company_a, product_a, product_b):
        make_product(db_session, company_a, sku="ACME-000", name="Empty", quantity=0)
        resp = client.get("/api/user/products", headers=user_a_headers)
        assert resp.status_code == 200
        assert [p["sku"] for p in resp.json] == ["ACME-001"]


class TestUserInventory:

    def test_backfilled_from_shipped_orders(self, client, db_session, user_a, user_a_headers, product_a):
        _order_with_item(db_session, user_a, product_a, "SHIPPED", 4)
        _order_with_item(db_session, user_a, product_a, "APPROVED", 9)

        resp = client.get("/api/user/inventory", headers=user_a_headers)
        assert resp.status_code == 200
        assert len(resp.json) == 1
        assert resp.json[0]["quantityReceived"] == 4
        assert resp.json[0]["quantityAvailable"] == 4
        assert resp.json[0]["product"]["sku"] == "ACME-001"

    def test_populate_keeps_used_quantity(self, client, db_session, user_a, user_a_headers, product_a):
        _order_with_item(db_session, user_a, product_a, "SHIPPED", 6)
        db_session.add(UserInventory(
            user_id=user_a.id, product_id=product_a.id,
            quantity_received=1, quantity_used=2, quantity_available=0,
        ))
        db_session.commit()

        resp = client.post("/api/user/inventory/populate", headers=user_a_headers)
        assert resp.status_code == 200
        assert resp.json["itemsWritten"] == 1

        db_session.expire_all()
        row = db_session.query(UserInventory).one()
        assert (row.quantity_received, row.quantity_used, row.quantity_available) == (6, 2, 4)

    def test_admin_without_company_cannot_populate(self, client, admin_headers):
        resp = client.post("/api/user/inventory/populate", headers=admin_headers)
        assert resp.status_code == 400
