"""
Shared fixtures.

Every test gets its own SQLite file through MONEY_DB, so tests never see each
other's rows. No test talks to a real model host; chatbot tests patch the
llm module.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("MONEY_DB", str(tmp_path / "money_test.db"))
    from money_manager.app import app

    with TestClient(app) as c:
        yield c


def register(client, email="alice@example.com", name="Alice", password="secret123"):
    res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def headers(client):
    return register(client)


@pytest.fixture
def other_headers(client):
    return register(client, email="bob@example.com", name="Bob")


@pytest.fixture
def make_account(client, headers):
    def _make(name="Checking", balance=1000.0, type_="checking", hdrs=None):
        res = client.post(
            "/api/accounts/",
            json={"name": name, "type": type_, "balance": balance},
            headers=hdrs or headers,
        )
        assert res.status_code == 201, res.text
        return res.json()["account"]

    return _make


@pytest.fixture
def make_category(client, headers):
    def _make(kind="expense", name="Groceries", hdrs=None, **extra):
        res = client.post(f"/api/{kind}-categories/", json={"name": name, **extra}, headers=hdrs or headers)
        assert res.status_code == 201, res.text
        return res.json()["category"]

    return _make


@pytest.fixture
def make_entry(client, headers):
    def _make(kind, account_id, category_id, amount, hdrs=None, **extra):
        body = {
            "account_id": account_id,
            "category_id": category_id,
            "amount": amount,
            "description": extra.pop("description", f"{kind} entry"),
            **extra,
        }
        res = client.post(f"/api/{kind}s/", json=body, headers=hdrs or headers)
        assert res.status_code == 201, res.text
        return res.json()[kind]

    return _make


def balance_of(client, headers, account_id):
    res = client.get(f"/api/accounts/{account_id}", headers=headers)
    assert res.status_code == 200, res.text
    return res.json()["balance"]
