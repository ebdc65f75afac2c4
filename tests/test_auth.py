from jose import jwt

from conftest import register
from money_manager.config import ALGORITHM, SECRET_KEY


class TestRegister:
    def test_register_returns_token_and_public_user(self, client):
        res = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "Alice@Example.com", "password": "secret123"},
        )
        assert res.status_code == 201
        body = res.json()
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["currency"] == "USD"
        assert "password_hash" not in body["user"]

        claims = jwt.decode(body["token"], SECRET_KEY, algorithms=[ALGORITHM])
        assert claims["sub"] == str(body["user"]["id"])
        assert "exp" in claims

    def test_duplicate_email_rejected(self, client):
        register(client)
        res = client.post(
            "/api/auth/register",
            json={"name": "Alice Again", "email": "alice@example.com", "password": "secret123"},
        )
        assert res.status_code == 400
        assert res.json()["message"] == "User already exists with this email"

    def test_short_password_is_a_validation_error(self, client):
        res = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "alice@example.com", "password": "123"},
        )
        assert res.status_code == 400
        assert res.json()["errors"]

    def test_bad_email_is_a_validation_error(self, client):
        res = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "not-an-email", "password": "secret123"},
        )
        assert res.status_code == 400
        assert "errors" in res.json()


class TestLogin:
    def test_login_with_valid_credentials(self, client):
        register(client)
        res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
        assert res.status_code == 200
        assert res.json()["token"]
        assert res.json()["user"]["name"] == "Alice"

    def test_wrong_password(self, client):
        register(client)
        res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid credentials"

    def test_unknown_email(self, client):
        res = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid credentials"


class TestCurrentUser:
    def test_me(self, client, headers):
        res = client.get("/api/auth/me", headers=headers)
        assert res.status_code == 200
        assert res.json()["user"]["email"] == "alice@example.com"

    def test_missing_token(self, client):
        res = client.get("/api/auth/me")
        assert res.status_code == 401
        assert res.json()["message"] == "No token, authorization denied"

    def test_garbage_token(self, client):
        res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401
        assert res.json()["message"] == "Token is not valid"

    def test_token_for_deleted_user(self, client):
        token = jwt.encode({"sub": "9999"}, SECRET_KEY, algorithm=ALGORITHM)
        res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_update_profile_is_partial(self, client, headers):
        res = client.put("/api/auth/profile", json={"currency": "EUR"}, headers=headers)
        assert res.status_code == 200
        user = res.json()["user"]
        assert user["currency"] == "EUR"
        assert user["name"] == "Alice"

    def test_update_profile_rejects_unknown_currency(self, client, headers):
        res = client.put("/api/auth/profile", json={"currency": "XYZ"}, headers=headers)
        assert res.status_code == 400


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "OK"
    assert res.json()["timestamp"]
