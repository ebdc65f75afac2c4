import datetime as dt

import pytest

CARD = {
    "name": "Visa",
    "type": "credit_card",
    "principal": 1000,
    "current_balance": 800,
    "interest_rate": 12,
    "minimum_payment": 100,
    "due_day": 15,
}


@pytest.fixture
def make_debt(client, headers):
    def _make(**overrides):
        res = client.post("/api/debts/", json={**CARD, **overrides}, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()

    return _make


class TestDebtCrud:
    def test_create_derives_fields(self, make_debt):
        debt = make_debt()
        assert debt["total_paid"] == 200.0
        assert debt["percentage_paid_off"] == 20.0
        assert debt["total_interest_paid"] == 0.0
        assert debt["status"] == "active"
        assert debt["estimated_payoff_date"] is not None
        assert debt["next_payment_date"] is not None
        assert debt["color"] == "#EF4444"

    def test_explicit_total_paid_kept(self, make_debt):
        debt = make_debt(total_paid=350)
        assert debt["total_paid"] == 350.0
        assert debt["total_interest_paid"] == 150.0

    def test_explicit_zero_total_paid_kept(self, make_debt):
        debt = make_debt(total_paid=0)
        assert debt["total_paid"] == 0.0
        assert debt["total_interest_paid"] == 0.0

    def test_payment_too_small_for_interest(self, make_debt):
        debt = make_debt(current_balance=10000, principal=10000, interest_rate=24, minimum_payment=100)
        assert debt["estimated_payoff_date"] is None

    def test_due_day_range(self, client, headers):
        res = client.post("/api/debts/", json={**CARD, "due_day": 32}, headers=headers)
        assert res.status_code == 400

    @pytest.mark.parametrize("field", ["principal", "current_balance", "minimum_payment"])
    def test_amounts_too_large(self, client, headers, field):
        res = client.post("/api/debts/", json={**CARD, field: 1e20}, headers=headers)
        assert res.status_code == 400

    def test_reminder_window_range(self, client, headers):
        res = client.post("/api/debts/", json={**CARD, "reminder_days_before": 10**20}, headers=headers)
        assert res.status_code == 400

    def test_list_order(self, client, headers, make_debt):
        make_debt(name="Late small", due_day=20, current_balance=100)
        make_debt(name="Early small", due_day=5, current_balance=100)
        make_debt(name="Early big", due_day=5, current_balance=500)
        names = [d["name"] for d in client.get("/api/debts/", headers=headers).json()]
        assert names == ["Early big", "Early small", "Late small"]

    def test_update_reestimates(self, client, headers, make_debt):
        debt = make_debt()
        res = client.put(f"/api/debts/{debt['id']}", json={"minimum_payment": 2}, headers=headers)
        assert res.status_code == 200
        assert res.json()["minimum_payment"] == 2.0
        assert res.json()["estimated_payoff_date"] is None

    def test_update_ignores_principal(self, client, headers, make_debt):
        debt = make_debt()
        res = client.put(f"/api/debts/{debt['id']}", json={"principal": 5, "name": "Renamed"}, headers=headers)
        assert res.json()["principal"] == 1000.0
        assert res.json()["name"] == "Renamed"

    def test_delete_and_ownership(self, client, headers, other_headers, make_debt):
        debt = make_debt()
        assert client.get(f"/api/debts/{debt['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/debts/{debt['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/debts/{debt['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/debts/{debt['id']}", headers=headers).status_code == 404


class TestPayments:
    def test_partial_payment(self, client, headers, make_debt):
        debt = make_debt()
        res = client.post(f"/api/debts/{debt['id']}/payment", json={"amount": 300, "date": "2024-05-01"}, headers=headers)
        assert res.status_code == 200
        body = res.json()
        assert body["current_balance"] == 500.0
        assert body["total_paid"] == 500.0
        assert body["last_payment_amount"] == 300.0
        assert body["last_payment_date"] == "2024-05-01"
        assert body["status"] == "active"

    def test_overpayment_pays_off(self, client, headers, make_debt):
        debt = make_debt()
        body = client.post(f"/api/debts/{debt['id']}/payment", json={"amount": 900}, headers=headers).json()
        assert body["current_balance"] == 0.0
        assert body["status"] == "paid_off"
        assert body["payoff_date"] == dt.date.today().isoformat()
        assert body["next_payment_date"] is None

    def test_payoff_date_follows_payment_date(self, client, headers, make_debt):
        debt = make_debt()
        res = client.post(f"/api/debts/{debt['id']}/payment", json={"amount": 800, "date": "2024-05-01"}, headers=headers)
        body = res.json()
        assert body["status"] == "paid_off"
        assert body["payoff_date"] == "2024-05-01"
        assert body["last_payment_date"] == "2024-05-01"

    def test_negative_payment_rejected(self, client, headers, make_debt):
        debt = make_debt()
        res = client.post(f"/api/debts/{debt['id']}/payment", json={"amount": -5}, headers=headers)
        assert res.status_code == 400


class TestReminders:
    def test_upcoming_and_send(self, client, headers, make_debt):
        today = dt.date.today()
        make_debt(name="Due today", due_day=today.day)
        make_debt(name="No reminder", due_day=today.day, reminder_enabled=False)
        make_debt(name="Paid", due_day=today.day, status="paid_off")

        reminders = client.get("/api/debts/reminders/upcoming", headers=headers).json()
        assert [r["name"] for r in reminders] == ["Due today"]
        assert reminders[0]["days_until_due"] == 0
        assert reminders[0]["message"] == "Payment due today for Due today!"

        res = client.post("/api/debts/reminders/send", headers=headers).json()
        assert res["message"] == "Sent 1 reminder(s)"

        notes = client.get("/api/notifications/", headers=headers).json()["notifications"]
        assert len(notes) == 1
        assert notes[0]["type"] == "debt_due_soon"
        assert notes[0]["priority"] == "urgent"


class TestAnalytics:
    def test_summary(self, client, headers, make_debt):
        make_debt(name="A", type="credit_card", principal=1000, current_balance=600, interest_rate=20, minimum_payment=50)
        make_debt(name="B", type="student_loan", principal=3000, current_balance=200, interest_rate=5, minimum_payment=100)
        make_debt(name="C", type="medical", principal=100, current_balance=0, status="paid_off")

        body = client.get("/api/debts/analytics/summary", headers=headers).json()
        assert body["debt_count"] == 2
        assert body["total_debt"] == 800.0
        assert body["total_principal"] == 4000.0
        assert body["total_monthly_payment"] == 150.0
        # (20 * 600 + 5 * 200) / 800
        assert body["avg_interest_rate"] == 16.25
        assert body["percentage_paid_off"] == 80.0
        assert body["debt_by_type"]["credit_card"]["count"] == 1
        assert body["debt_by_type"]["student_loan"]["total_balance"] == 200.0
