from datetime import timedelta

from sqlalchemy import text

from conftest import login
from udyoga_setu.core.auth import create_access_token, decode_token, hash_password, verify_password
from udyoga_setu.db.postgres import get_db_session


def register(client, email="hr@acme.in", password="password123", **extra):
    return client.post("/api/auth/register", json={"email": email, "password": password, **extra})


class TestPasswords:
    def test_hash_round_trip(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)


class TestTokens:
    def test_token_carries_subject(self):
        payload = decode_token(create_access_token("user-1", "admin"))
        assert payload["sub"] == "user-1"
        assert payload["role"] == "admin"

    def test_expired_token(self):
        assert decode_token(create_access_token("user-1", "employer", timedelta(seconds=-1))) is None

    def test_garbage_token(self):
        assert decode_token("not-a-jwt") is None


class TestRegisterAndLogin:
    def test_register_creates_employer(self, client):
        response = register(client, full_name="Priya Nair")

        assert response.status_code == 201
        assert response.json()["message"] == "Registered successfully as employer. Please login."

        token = login(client, "hr@acme.in")
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["role"] == "employer"
        assert me["full_name"] == "Priya Nair"
        assert me["company_id"] is None

    def test_role_cannot_be_chosen(self, client):
        register(client, role="admin")
        response = client.post("/api/auth/login", json={"email": "hr@acme.in", "password": "password123"})
        assert response.json()["role"] == "employer"

    def test_duplicate_email(self, client):
        register(client)
        response = register(client)
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_short_password(self, client):
        assert register(client, password="short").status_code == 422

    def test_invalid_email(self, client):
        assert register(client, email="not-an-email").status_code == 422

    def test_wrong_password(self, client):
        register(client)
        response = client.post("/api/auth/login", json={"email": "hr@acme.in", "password": "wrong-password"})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@acme.in", "password": "password123"})
        assert response.status_code == 401

    def test_deactivated_account(self, client):
        register(client)
        token = login(client, "hr@acme.in")
        with get_db_session() as db:
            db.execute(text("UPDATE users SET is_active = :active WHERE email = :email"),
                       {"active": False, "email": "hr@acme.in"})

        response = client.post("/api/auth/login", json={"email": "hr@acme.in", "password": "password123"})
        assert response.status_code == 403
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 403

    def test_bad_token(self, client):
        assert client.get("/api/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


class TestCompanyProfile:
    def test_profile_lifecycle(self, client, employer):
        headers = employer["headers"]

        profile = client.get("/api/companies/profile", headers=headers).json()
        assert profile["name"] == "Acme Textiles"

        updated = client.put("/api/companies/profile", json={"website": "https://acme.in"}, headers=headers).json()
        assert updated["website"] == "https://acme.in"
        assert updated["name"] == "Acme Textiles"

        me = client.get("/api/auth/me", headers=headers).json()
        assert me["company_id"] == employer["company_id"]

    def test_second_profile_is_refused(self, client, employer):
        response = client.post("/api/companies/profile", json={"name": "Another"}, headers=employer["headers"])
        assert response.status_code == 400

    def test_empty_update(self, client, employer):
        assert client.put("/api/companies/profile", json={}, headers=employer["headers"]).status_code == 400

    def test_profile_before_creation(self, client):
        register(client)
        token = login(client, "hr@acme.in")
        response = client.get("/api/companies/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 404

    def test_admin_cannot_create_profile(self, client, admin_headers):
        response = client.post("/api/companies/profile", json={"name": "Admin Co"}, headers=admin_headers)
        assert response.status_code == 403
