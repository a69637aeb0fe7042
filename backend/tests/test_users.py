"""
Director user management: USER accounts of the director's own company only.
"""

import pytest

from supplydesk.models import SessionToken, User

from conftest import auth_headers, get_auth_token


class TestDirectorUsers:

    def test_list_only_company_users(self, client, director_a_headers, user_a, user_b, director_a):
        resp = client.get("/api/director/users", headers=director_a_headers)
        assert resp.status_code == 200
        assert [u["email"] for u in resp.json] == ["user@acme.test"]
        assert resp.json[0]["_count"] == {"orderRequests": 0, "payments": 0, "expenses": 0}

    def test_create_member(self, client, db_session, director_a, director_a_headers):
        resp = client.post(
            "/api/director/users",
            json={"name": "New Hire", "email": "New@Acme.test", "password": "password123"},
            headers=director_a_headers,
        )
        assert resp.status_code == 201
        assert resp.json["role"] == "USER"
        assert resp.json["email"] == "new@acme.test"
        assert resp.json["companyId"] == director_a.company_id

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "x@acme.test", "password": "password123"},
            {"name": "X", "password": "password123"},
            {"name": "X", "email": "x@acme.test"},
            {"name": "X", "email": "x@acme.test", "password": "short"},
        ],
    )
    def test_create_invalid(self, client, db_session, director_a_headers, body):
        resp = client.post("/api/director/users", json=body, headers=director_a_headers)
        assert resp.status_code == 400
        assert db_session.query(User).filter_by(email="x@acme.test").count() == 0

    def test_create_duplicate_email(self, client, director_a_headers, user_b):
        resp = client.post(
            "/api/director/users",
            json={"name": "Clash", "email": user_b.email, "password": "password123"},
            headers=director_a_headers,
        )
        assert resp.status_code == 400

    def test_update_member(self, client, director_a_headers, user_a):
        resp = client.put(
            f"/api/director/users/{user_a.id}", json={"name": "Renamed"}, headers=director_a_headers
        )
        assert resp.status_code == 200
        assert resp.json["name"] == "Renamed"

    @pytest.mark.parametrize(
        "body,error",
        [
            ({"name": 123}, "name must be a string"),
            ({"name": None}, "name must be a string"),
            ({"name": "  "}, "name cannot be blank"),
            ({"email": 5}, "email must be a string"),
            ({"email": ""}, "email cannot be blank"),
        ],
    )
    def test_update_rejects_bad_name_or_email(self, client, db_session, director_a_headers, user_a, body, error):
        resp = client.put(f"/api/director/users/{user_a.id}", json=body, headers=director_a_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == error

        db_session.expire_all()
        member = db_session.get(User, user_a.id)
        assert (member.name, member.email) == ("User A", "user@acme.test")

    def test_create_rejects_non_string_name(self, client, db_session, director_a_headers):
        resp = client.post(
            "/api/director/users",
            json={"name": 42, "email": "x@acme.test", "password": "password123"},
            headers=director_a_headers,
        )
        assert resp.status_code == 400
        assert db_session.query(User).filter_by(email="x@acme.test").count() == 0

    def test_password_change_revokes_sessions(self, client, db_session, director_a_headers, user_a):
        old_token = get_auth_token(client, user_a.email)
        resp = client.put(
            f"/api/director/users/{user_a.id}",
            json={"password": "new-password-1"},
            headers=director_a_headers,
        )
        assert resp.status_code == 200

        stale = client.get("/api/auth/session", headers=auth_headers(old_token))
        assert stale.status_code == 401
        assert get_auth_token(client, user_a.email, "new-password-1") is not None

    def test_deactivate_revokes_sessions(self, client, db_session, director_a_headers, user_a):
        get_auth_token(client, user_a.email)
        resp = client.put(
            f"/api/director/users/{user_a.id}", json={"isActive": False}, headers=director_a_headers
        )
        assert resp.json["isActive"] is False

        db_session.expire_all()
        tokens = db_session.query(SessionToken).filter_by(user_id=user_a.id).all()
        assert tokens and all(t.is_revoked for t in tokens)

    @pytest.mark.parametrize("target", ["director_a", "user_b", "admin"])
    def test_cannot_touch_non_members(self, client, db_session, request, director_a_headers, target):
        other = request.getfixturevalue(target)
        original_name = other.name

        resp = client.put(
            f"/api/director/users/{other.id}", json={"name": "Hijacked"}, headers=director_a_headers
        )
        assert resp.status_code == 404
        resp = client.delete(f"/api/director/users/{other.id}", headers=director_a_headers)
        assert resp.status_code == 404

        db_session.expire_all()
        assert db_session.get(User, other.id).name == original_name

    def test_delete_member(self, client, db_session, director_a_headers, user_a):
        user_id = user_a.id
        resp = client.delete(f"/api/director/users/{user_id}", headers=director_a_headers)
        assert resp.status_code == 200
        assert resp.json["message"] == "User deleted successfully"

        db_session.expire_all()
        assert db_session.get(User, user_id) is None
