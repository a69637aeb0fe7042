"""Category tests: listing for every role, creation for ADMIN and COMPANY_DIRECTOR."""

import pytest

from supplydesk.models import Category


class TestCategories:

    def test_list_active_sorted(self, client, db_session, user_a_headers):
        db_session.add_all([
            Category(name="Software"),
            Category(name="Electronics"),
            Category(name="Archived", is_active=False),
        ])
        db_session.commit()

        resp = client.get("/api/categories", headers=user_a_headers)
        assert resp.status_code == 200
        assert [c["name"] for c in resp.json] == ["Electronics", "Software"]

    @pytest.mark.parametrize("headers_fixture", ["admin_headers", "director_a_headers"])
    def test_create(self, client, db_session, request, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        resp = client.post(
            "/api/categories",
            json={"name": "  Hardware ", "description": "Cables and adapters"},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json["name"] == "Hardware"
        assert set(resp.json) == {"id", "name", "description"}

    def test_duplicate_name_rejected(self, client, db_session, director_a_headers):
        client.post("/api/categories", json={"name": "Tools"}, headers=director_a_headers)
        resp = client.post("/api/categories", json={"name": "Tools"}, headers=director_a_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Category name already exists"
        assert db_session.query(Category).filter_by(name="Tools").count() == 1

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "   "}, {"name": 42}])
    def test_name_required(self, client, director_a_headers, body):
        resp = client.post("/api/categories", json=body, headers=director_a_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Category name is required"

    @pytest.mark.parametrize("body", [["Tools"], "Tools", 7])
    def test_non_object_body_rejected(self, client, db_session, director_a_headers, body):
        resp = client.post("/api/categories", json=body, headers=director_a_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid JSON payload"
        assert db_session.query(Category).count() == 0
