import datetime as dt


class TestDashboard:
    def test_empty(self, client, headers):
        body = client.get("/api/users/dashboard", headers=headers).json()
        assert body["total_balance"] == 0.0
        assert body["accounts"] == 0
        assert body["recent_transactions"] == []

    def test_totals_and_recent(self, client, headers, make_account, make_category, make_entry):
        checking = make_account(balance=1000)
        closed = make_account(name="Old", balance=500)
        client.delete(f"/api/accounts/{closed['id']}", headers=headers)
        food = make_category(name="Food")
        salary = make_category(kind="income", name="Salary")

        today = dt.date.today()
        make_entry("income", checking["id"], salary["id"], 3000)
        make_entry("expense", checking["id"], food["id"], 200)
        make_entry("expense", checking["id"], food["id"], 50, date=(today.replace(day=1) - dt.timedelta(days=1)).isoformat())

        body = client.get("/api/users/dashboard", headers=headers).json()
        assert body["accounts"] == 1
        assert body["total_balance"] == 3750.0
        assert body["monthly_income"] == 3000.0
        assert body["monthly_expenses"] == 200.0
        assert len(body["recent_transactions"]) == 3
        assert {t["kind"] for t in body["recent_transactions"]} == {"income", "expense"}
        assert body["recent_transactions"][-1]["amount"] == 50.0

    def test_recent_is_capped_at_ten(self, client, headers, make_account, make_category, make_entry):
        account = make_account()
        food = make_category(name="Food")
        salary = make_category(kind="income", name="Salary")
        for _ in range(7):
            make_entry("expense", account["id"], food["id"], 1)
            make_entry("income", account["id"], salary["id"], 1)

        body = client.get("/api/users/dashboard", headers=headers).json()
        assert len(body["recent_transactions"]) == 10
