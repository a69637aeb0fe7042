"""
Reporting tests: /dashboard/stats per role, the director dashboard and the
director performance report.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from supplydesk.models import Expense, OrderRequest, Payment, UserInventory
from supplydesk.time_utils import utcnow

from conftest import make_product


@pytest.fixture
def activity(db_session, user_a, product_a):
    """One approved order, one payment and one expense for User A, yesterday."""
    yesterday = utcnow() - timedelta(days=1)
    db_session.add_all([
        OrderRequest(
            user_id=user_a.id, company_id=user_a.company_id, status="APPROVED",
            total_amount=Decimal("20.00"), created_at=yesterday,
        ),
        Payment(
            user_id=user_a.id, company_id=user_a.company_id, amount=Decimal("40.00"),
            description="Transfer", payment_date=yesterday,
        ),
        Expense(
            user_id=user_a.id, company_id=user_a.company_id, amount=Decimal("15.00"),
            description="Fuel", category="Travel", expense_date=yesterday,
        ),
        UserInventory(
            user_id=user_a.id, product_id=product_a.id,
            quantity_received=3, quantity_used=0, quantity_available=3,
        ),
    ])
    db_session.commit()
    return user_a


class TestDashboardStats:

    def test_requires_session(self, client, db_session):
        resp = client.get("/dashboard/stats")
        assert resp.status_code == 401

    def test_admin_sees_global_counts(self, client, db_session, admin_headers, company_a, company_b, activity):
        make_product(db_session, company_b, sku="BETA-LOW", name="Scarce", quantity=2)

        resp = client.get("/dashboard/stats", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json
        assert body["role"] == "ADMIN"
        assert body["totalCompanies"] == 2
        assert body["totalProducts"] == 2
        assert body["lowStockProducts"] == 1
        assert body["totalOrders"] == 1
        assert body["pendingOrders"] == 0
        assert body["totalPayments"] == 40.0
        assert body["totalExpenses"] == 15.0

    def test_user_sees_own_numbers(self, client, user_a_headers, user_b_headers, activity):
        body = client.get("/dashboard/stats", headers=user_a_headers).json
        assert body["role"] == "USER"
        assert body["totalOrders"] == 1
        assert body["totalPayments"] == 40.0
        assert body["inventory"]["totalQuantity"] == 3
        assert body["inventory"]["lowStock"] == 1
        assert body["totalCustomers"] == 0

        other = client.get("/dashboard/stats", headers=user_b_headers).json
        assert other["totalOrders"] == 0
        assert other["totalPayments"] == 0.0


class TestDirectorDashboard:

    def test_company_stats_and_inventory(self, client, director_a_headers, activity):
        resp = client.get("/api/director/dashboard", headers=director_a_headers)
        assert resp.status_code == 200
        body = resp.json

        assert body["companyStats"]["totalUsers"] == 1
        assert body["companyStats"]["approvedOrders"] == 1
        assert body["companyInventory"]["totalQuantity"] == 3
        assert body["companyInventory"]["inventoryValue"] == 30.0

        member = body["users"][0]
        assert member["user"]["email"] == "user@acme.test"
        assert member["performance"]["recentOrders"] == 1
        assert member["performance"]["monthlyPayments"] == 40.0

    def test_user_role_rejected(self, client, user_a_headers):
        resp = client.get("/api/director/dashboard", headers=user_a_headers)
        assert resp.status_code == 401


class TestPerformanceReport:

    def test_defaults_to_six_months(self, client, director_a_headers, activity):
        resp = client.get("/api/director/performance", headers=director_a_headers)
        assert resp.status_code == 200
        body = resp.json
        assert body["period"] == "6months"
        assert len(body["monthlyTrends"]) == 6
        assert body["monthlyTrends"][-1]["orders"] == 1

        kpis = body["kpis"]
        assert kpis["totalRevenue"] == 40.0
        assert kpis["totalExpenses"] == 15.0
        assert kpis["netProfit"] == 25.0
        assert kpis["activeUsers"] == 1
        assert kpis["orderFulfillmentRate"] == 100.0

        assert body["categoryBreakdown"] == [{"category": "Travel", "amount": 15.0, "count": 1}]

        row = body["userPerformance"][0]
        assert row["userEmail"] == "user@acme.test"
        assert row["totalOrderAmount"] == 20.0
        assert row["avgOrderValue"] == 20.0
        assert row["lastActivity"] is not None

    def test_three_month_window(self, client, director_a_headers, activity):
        body = client.get("/api/director/performance?period=3months", headers=director_a_headers).json
        assert body["period"] == "3months"
        assert len(body["monthlyTrends"]) == 3

    def test_old_activity_outside_window(self, client, db_session, director_a_headers, user_a):
        db_session.add(Payment(
            user_id=user_a.id, company_id=user_a.company_id, amount=Decimal("99.00"),
            description="Ancient", payment_date=utcnow() - timedelta(days=200),
        ))
        db_session.commit()
        body = client.get("/api/director/performance?period=3months", headers=director_a_headers).json
        assert body["kpis"]["totalRevenue"] == 0.0
        assert body["kpis"]["activeUsers"] == 0

    def test_invalid_period(self, client, director_a_headers):
        resp = client.get("/api/director/performance?period=2weeks", headers=director_a_headers)
        assert resp.status_code == 400
        assert "period" in resp.json["error"]
