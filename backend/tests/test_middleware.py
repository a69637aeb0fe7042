"""
Page routing tests.

The before_request gate sends unauthenticated page requests to the signin
page and routes signed-in users to the page that matches their role.
"""

import pytest

from supplydesk.middleware import is_api_path, is_public_path, page_redirect_for
from supplydesk.models import ROLE_ADMIN, ROLE_DIRECTOR, ROLE_USER


class TestPageRedirectTable:

    @pytest.mark.parametrize(
        "path,role,expected",
        [
            ("/", ROLE_USER, "/dashboard"),
            ("/", ROLE_ADMIN, "/dashboard"),
            ("/admin", ROLE_USER, "/dashboard"),
            ("/admin/companies", ROLE_DIRECTOR, "/dashboard"),
            ("/admin", ROLE_ADMIN, None),
            ("/director", ROLE_USER, "/dashboard"),
            ("/director/stock", ROLE_ADMIN, "/dashboard"),
            ("/director", ROLE_DIRECTOR, None),
            ("/dashboard", ROLE_ADMIN, "/admin"),
            ("/dashboard", ROLE_DIRECTOR, "/director"),
            ("/dashboard", ROLE_USER, None),
            ("/dashboard/orders", ROLE_USER, None),
        ],
    )
    def test_redirect_targets(self, path, role, expected):
        assert page_redirect_for(path, role) == expected

    def test_path_classification(self):
        assert is_public_path("/api/auth/login")
        assert is_public_path("/auth/signin")
        assert is_public_path("/health")
        assert not is_public_path("/api/user/orders")

        assert is_api_path("/api/director/stock")
        assert is_api_path("/dashboard/stats")
        assert not is_api_path("/dashboard")


class TestPageRequests:

    def test_anonymous_page_redirects_to_signin(self, client, db_session):
        resp = client.get("/director")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/auth/signin?callbackUrl=%2Fdirector")

    def test_signin_page_is_public(self, client, db_session):
        resp = client.get("/auth/signin?callbackUrl=/director")
        assert resp.status_code == 200
        assert resp.json["callbackUrl"] == "/director"

    def test_admin_dashboard_goes_to_admin(self, client, admin_headers):
        resp = client.get("/dashboard", headers=admin_headers)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/admin")

    def test_director_dashboard_goes_to_director(self, client, director_a_headers):
        resp = client.get("/dashboard", headers=director_a_headers)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/director")

    def test_user_stays_on_dashboard(self, client, user_a_headers):
        resp = client.get("/dashboard", headers=user_a_headers)
        assert resp.status_code == 200
        assert resp.json["role"] == ROLE_USER

    def test_user_bounced_from_admin(self, client, user_a_headers):
        resp = client.get("/admin", headers=user_a_headers)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/dashboard")

    def test_director_reaches_director_page(self, client, director_a_headers):
        resp = client.get("/director", headers=director_a_headers)
        assert resp.status_code == 200
        assert resp.json["page"] == "director"

    def test_identity_does_not_leak_between_requests(self, client, user_a_headers):
        assert client.get("/api/user/balance", headers=user_a_headers).status_code == 200
        assert client.get("/api/user/balance").status_code == 401
