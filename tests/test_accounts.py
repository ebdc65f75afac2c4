from conftest import balance_of


class TestAccounts:
    def test_create_uses_defaults(self, client, headers):
        res = client.post("/api/accounts/", json={"name": "Wallet", "type": "cash"}, headers=headers)
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "Account created successfully"
        account = body["account"]
        assert account["balance"] == 0.0
        assert account["currency"] == "USD"
        assert account["color"] == "#3B82F6"
        assert account["icon"] == "wallet"
        assert account["is_active"] is True

    def test_currency_defaults_to_owner_currency(self, client, headers):
        client.put("/api/auth/profile", json={"currency": "GBP"}, headers=headers)
        res = client.post("/api/accounts/", json={"name": "UK", "type": "checking"}, headers=headers)
        assert res.json()["account"]["currency"] == "GBP"

    def test_invalid_type(self, client, headers):
        res = client.post("/api/accounts/", json={"name": "X", "type": "piggy"}, headers=headers)
        assert res.status_code == 400
        assert res.json()["errors"]

    def test_list_newest_first_and_hides_deleted(self, client, headers, make_account):
        first = make_account(name="First")
        second = make_account(name="Second")
        client.delete(f"/api/accounts/{first['id']}", headers=headers)

        res = client.get("/api/accounts/", headers=headers)
        assert [a["id"] for a in res.json()] == [second["id"]]

    def test_update_balance_resets_baseline(self, client, headers, make_account):
        account = make_account(balance=10)
        res = client.put(f"/api/accounts/{account['id']}", json={"balance": 250.5, "name": "Renamed"}, headers=headers)
        assert res.status_code == 200
        assert res.json()["account"]["name"] == "Renamed"
        assert balance_of(client, headers, account["id"]) == 250.5

    def test_other_users_account_is_not_found(self, client, headers, other_headers, make_account):
        account = make_account()
        assert client.get(f"/api/accounts/{account['id']}", headers=other_headers).status_code == 404
        assert client.put(f"/api/accounts/{account['id']}", json={"name": "x"}, headers=other_headers).status_code == 404
        assert client.delete(f"/api/accounts/{account['id']}", headers=other_headers).status_code == 404

    def test_requires_auth(self, client):
        assert client.get("/api/accounts/").status_code == 401

    def test_balance_too_large(self, client, headers):
        res = client.post("/api/accounts/", json={"name": "Vault", "type": "savings", "balance": 1e20}, headers=headers)
        assert res.status_code == 400
        assert client.get("/api/accounts/", headers=headers).json() == []

    def test_huge_id_is_a_bad_request(self, client, headers):
        assert client.delete("/api/accounts/99999999999999999999", headers=headers).status_code == 400
