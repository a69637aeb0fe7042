# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-company access is denied.

Two companies each get a director, a user and a product; then we verify:
1. Director A cannot read or modify Company B's products, orders or users
2. Foreign IDs answer 404 exactly like missing ones
3. Cross-tenant attempts are recorded as security events
"""

import pytest

from supplydesk.models import OrderRequest, Product, SecurityEvent
from supplydesk.models.orders import STATUS_PENDING
from supplydesk.services.tenant_service import (
    TenantAccessError,
    require_member_in_company,
    require_product_in_company,
)


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_product_in_company_valid(self, db_session, company_a, product_a):
        result = require_product_in_company(product_a.id, company_a.id)
        assert result.id == product_a.id

    def test_require_product_in_company_cross_tenant(self, app, db_session, company_a, product_b):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                require_product_in_company(product_b.id, company_a.id)

    def test_require_product_nonexistent(self, db_session, company_a):
        with pytest.raises(TenantAccessError):
            require_product_in_company(99999, company_a.id)

    def test_require_member_rejects_director(self, app, db_session, company_a, director_a):
        with pytest.raises(TenantAccessError):
            require_member_in_company(director_a.id, company_a.id)

    def test_cross_tenant_access_logs_security_event(self, app, db_session, company_a, product_b):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                require_product_in_company(product_b.id, company_a.id)

        event = db_session.query(SecurityEvent).filter_by(
            event_type="CROSS_TENANT_ACCESS_DENIED"
        ).one()
        assert event.success is False
        assert event.company_id == company_a.id

    def test_denied_lookup_discards_staged_changes(self, app, db_session, company_a, product_a, product_b):
        original_name = product_a.name
        product_a.name = "Renamed mid-request"

        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                require_product_in_company(product_b.id, company_a.id)

        db_session.rollback()
        assert db_session.get(Product, product_a.id).name == original_name
        assert db_session.query(SecurityEvent).filter_by(
            event_type="CROSS_TENANT_ACCESS_DENIED"
        ).count() == 1


class TestProductIsolation:

    def test_list_only_own_products(self, client, director_a_headers, product_a, product_b):
        resp = client.get("/api/director/products", headers=director_a_headers)
        assert resp.status_code == 200
        skus = {p["sku"] for p in resp.json}
        assert skus == {"ACME-001"}

    def test_cannot_read_foreign_product(self, client, director_a_headers, product_b):
        resp = client.get(f"/api/director/products/{product_b.id}", headers=director_a_headers)
        assert resp.status_code == 404

    def test_cannot_update_foreign_product(self, client, db_session, director_a_headers, product_b):
        resp = client.put(
            f"/api/director/products/{product_b.id}",
            json={"name": "Hijacked"},
            headers=director_a_headers,
        )
        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(Product, product_b.id).name == "Widget B"

    def test_cannot_restock_foreign_product(self, client, db_session, director_a_headers, product_b):
        resp = client.patch(
            "/api/director/products/restock",
            json={"productId": product_b.id, "quantity": 10},
            headers=director_a_headers,
        )
        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(Product, product_b.id).quantity == 50

    def test_cannot_delete_foreign_product(self, client, db_session, director_a_headers, product_b):
        resp = client.delete(f"/api/director/products/{product_b.id}", headers=director_a_headers)
        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(Product, product_b.id).is_active is True

    def test_user_cannot_order_foreign_product(self, client, db_session, user_a_headers, product_b):
        resp = client.post(
            "/api/user/orders",
            json={"items": [{"productId": product_b.id, "quantity": 1}]},
            headers=user_a_headers,
        )
        assert resp.status_code == 404
        assert db_session.query(OrderRequest).count() == 0

    def test_orderable_products_scoped(self, client, user_b_headers, product_a, product_b):
        resp = client.get("/api/user/products", headers=user_b_headers)
        assert [p["sku"] for p in resp.json] == ["BETA-001"]


class TestOrderIsolation:

    @pytest.fixture
    def order_b(self, db_session, user_b, company_b):
        order = OrderRequest(user_id=user_b.id, company_id=company_b.id, status=STATUS_PENDING)
        db_session.add(order)
        db_session.commit()
        return order

    def test_cannot_read_foreign_order(self, client, director_a_headers, order_b):
        resp = client.get(f"/api/director/orders/{order_b.id}", headers=director_a_headers)
        assert resp.status_code == 404

    def test_cannot_change_foreign_order(self, client, db_session, director_a_headers, order_b):
        resp = client.patch(
            "/api/director/orders",
            json={"orderId": order_b.id, "status": "APPROVED"},
            headers=director_a_headers,
        )
        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(OrderRequest, order_b.id).status == STATUS_PENDING

    def test_list_only_own_orders(self, client, director_a_headers, order_b):
        resp = client.get("/api/director/orders", headers=director_a_headers)
        assert resp.status_code == 200
        assert resp.json == []

    def test_user_cannot_read_another_users_order(self, client, user_a_headers, order_b):
        resp = client.get(f"/api/user/orders/{order_b.id}", headers=user_a_headers)
        assert resp.status_code == 404


class TestUserIsolation:

    def test_cannot_update_foreign_user(self, client, db_session, director_a_headers, user_b):
        resp = client.put(
            f"/api/director/users/{user_b.id}",
            json={"name": "Renamed"},
            headers=director_a_headers,
        )
        assert resp.status_code == 404
        db_session.expire_all()
        assert user_b.name == "User B"

    def test_cannot_delete_foreign_user(self, client, director_a_headers, user_b):
        resp = client.delete(f"/api/director/users/{user_b.id}", headers=director_a_headers)
        assert resp.status_code == 404

    def test_cannot_read_foreign_customer_debts(self, client, director_a_headers, user_b):
        resp = client.get(f"/api/director/users/{user_b.id}/customer-debts", headers=director_a_headers)
        assert resp.status_code == 404

    def test_list_only_own_users(self, client, director_a_headers, user_a, user_b):
        resp = client.get("/api/director/users", headers=director_a_headers)
        assert [u["email"] for u in resp.json] == ["user@acme.test"]
