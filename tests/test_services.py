"""Unit tests for the pure helpers behind the routers."""

import datetime as dt

import pytest

from money_manager.db import from_cents, to_cents
from money_manager.services.assistant import affordability_reply, parse_amounts, rule_reply
from money_manager.services.budgets import percentage
from money_manager.services.debts import estimate_payoff
from money_manager.services.periods import add_months, next_payment_date, period_end


class TestPeriods:
    @pytest.mark.parametrize(
        "start, months, expected",
        [
            (dt.date(2024, 1, 31), 1, dt.date(2024, 2, 29)),
            (dt.date(2023, 1, 31), 1, dt.date(2023, 2, 28)),
            (dt.date(2024, 11, 15), 3, dt.date(2025, 2, 15)),
            (dt.date(2024, 2, 29), 12, dt.date(2025, 2, 28)),
        ],
    )
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_period_end(self):
        start = dt.date(2024, 3, 1)
        assert period_end(start, "weekly") == dt.date(2024, 3, 8)
        assert period_end(start, "monthly") == dt.date(2024, 4, 1)
        assert period_end(start, "yearly") == dt.date(2025, 3, 1)

    def test_next_payment_date(self):
        today = dt.date(2024, 2, 10)
        assert next_payment_date(10, today) == today
        assert next_payment_date(31, today) == dt.date(2024, 2, 29)
        assert next_payment_date(5, today) == dt.date(2024, 3, 5)
        assert next_payment_date(5, dt.date(2024, 12, 20)) == dt.date(2025, 1, 5)


class TestPayoffEstimate:
    def test_no_interest(self):
        assert estimate_payoff(100000, 0, 10000, start=dt.date(2024, 1, 15)) == dt.date(2024, 11, 15)

    def test_already_paid(self):
        assert estimate_payoff(0, 20, 0, start=dt.date(2024, 1, 1)) == dt.date(2024, 1, 1)

    def test_payment_equal_to_interest_never_pays_off(self):
        # 1% a month on $1000 is exactly $10
        assert estimate_payoff(100000, 12, 1000) is None

    def test_capped_at_fifty_years(self):
        assert estimate_payoff(100000, 12, 1001) is None

    def test_with_interest_takes_longer(self):
        start = dt.date(2024, 1, 1)
        assert estimate_payoff(100000, 18, 10000, start=start) > estimate_payoff(100000, 0, 10000, start=start)


def test_money_conversion():
    assert to_cents(19.99) == 1999
    assert to_cents(0.1 + 0.2) == 30
    assert from_cents(1999) == 19.99
    assert from_cents(None) is None


def test_budget_percentage():
    assert percentage(5000, 10000) == 50.0
    assert percentage(0, 0) == 0.0
    assert percentage(100, 0) == 100.0


class TestAssistantHelpers:
    def test_parse_amounts(self):
        assert parse_amounts("can i buy a $1,200.50 tv") == [1200.5]
        assert parse_amounts("2.5k or 1 million") == [2500.0, 1_000_000.0]
        assert parse_amounts("save for 5 months") == [5.0]
        assert parse_amounts("nothing here") == []

    def test_affordability_caution(self):
        snapshot = {"total_funds": 1000.0, "month_expenses": 800.0, "total_debt": 0.0}
        reply = affordability_reply(snapshot, 500)
        assert "Months of expenses covered (remaining): 0.6" in reply
        assert "Recommendation: Caution." in reply

    @pytest.fixture
    def snapshot(self):
        return {
            "today": "2024-03-15",
            "month_label": "March 2024",
            "total_funds": 3000.0,
            "month_income": 2000.0,
            "month_expenses": 1000.0,
            "total_debt": 500.0,
            "accounts": [{"name": "Checking", "type": "checking", "balance": 3000.0}],
            "debts": [
                {"name": "Card", "principal": 1000.0, "current_balance": 400.0, "interest_rate": 20, "total_paid": 600.0},
                {"name": "Loan", "principal": 200.0, "current_balance": 100.0, "interest_rate": 4, "total_paid": 100.0},
            ],
            "expenses": [
                {"amount": 700.0, "description": "Rent", "date": "2024-03-01", "category": "Housing"},
                {"amount": 15.0, "description": "Netflix", "date": "2024-03-02", "category": "Fun"},
                {"amount": 285.0, "description": "Groceries", "date": "2024-03-03", "category": "Food"},
            ],
            "incomes": [{"amount": 2000.0, "description": "Salary", "date": "2024-03-01", "category": "Salary"}],
            "budgets": [],
        }

    def test_category_breakdown_is_not_swallowed_by_spending(self, snapshot):
        reply = rule_reply("spending by category", snapshot)
        assert reply.startswith("Spending by category (this month, total $1000.00)")

    def test_payoff_priority(self, snapshot):
        reply = rule_reply("which debt first?", snapshot)
        assert reply.splitlines()[1] == "  - Card: $400.00 at 20%"

    def test_runway(self, snapshot):
        assert rule_reply("what is my runway", snapshot) == "Current funds cover ~3.0 months of expenses."

    def test_savings_rate(self, snapshot):
        assert rule_reply("am i saving enough", snapshot).startswith(
            "This month, you're saving $1000.00 (50.0% savings rate)."
        )

    def test_savings_goal(self, snapshot):
        reply = rule_reply("savings goal $5,000", snapshot)
        assert reply.startswith("Goal: $5000.00. Estimated monthly savings: $1000.00.")
        assert "5.0 months" in reply

    def test_subscriptions(self, snapshot):
        assert "subscriptions total $15.00 across 1 charge(s)" in rule_reply("any subscriptions?", snapshot)

    def test_net_worth(self, snapshot):
        reply = rule_reply("what's my net worth", snapshot)
        assert reply.startswith("Current net worth: $2500.00")
        assert "$14500.00" in reply

    def test_budget_recommendation(self, snapshot):
        reply = rule_reply("budget recommendation", snapshot)
        assert reply.startswith("50/30/20 guideline")

    def test_trend(self, snapshot):
        assert rule_reply("income vs expense", snapshot).endswith("Net surplus: $1000.00.")

    def test_summary(self, snapshot):
        assert rule_reply("give me an overview", snapshot).startswith("Financial Summary for March 2024")
