# money_manager/seed.py
#
# Demo data for local runs: python -m money_manager.seed

import datetime as dt
import logging

from money_manager.auth import create_user, get_user_row_by_email
from money_manager.config import db_path
from money_manager.db import get_conn, init_db, now_iso
from money_manager.services.budgets import create_budget
from money_manager.services.debts import create_debt
from money_manager.services.entries import create_entry

logger = logging.getLogger(__name__)

# EDIT THESE IF YOU WANT DIFFERENT CREDENTIALS
DEFAULT_NAME = "Demo User"
DEFAULT_EMAIL = "demo@example.com"
DEFAULT_PASSWORD = "demo1234"

EXPENSE_CATEGORIES = [
    ("Food & Dining", "#F59E0B", "utensils"),
    ("Transportation", "#3B82F6", "car"),
    ("Shopping", "#EC4899", "shopping-bag"),
    ("Bills & Utilities", "#EF4444", "file-text"),
    ("Entertainment", "#8B5CF6", "film"),
]
INCOME_CATEGORIES = [
    ("Salary", "#10B981", "briefcase"),
    ("Freelance", "#14B8A6", "laptop"),
]


def _insert_category(con, user_id: int, kind: str, name: str, color: str, icon: str) -> int:
    ts = now_iso()
    cur = con.execute(
        """
        INSERT INTO categories (user_id, kind, name, color, icon, budget_period, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (user_id, kind, name, color, icon, "monthly" if kind == "expense" else None, ts, ts),
    )
    return cur.lastrowid


def _insert_account(con, user_id: int, name: str, type_: str, balance_cents: int) -> int:
    ts = now_iso()
    cur = con.execute(
        """
        INSERT INTO accounts (user_id, name, type, balance_cents, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (user_id, name, type_, balance_cents, ts, ts),
    )
    return cur.lastrowid


def seed(email: str = DEFAULT_EMAIL, password: str = DEFAULT_PASSWORD) -> bool:
    """Create the demo user and their data. Returns False if the user already exists."""
    init_db()

    if get_user_row_by_email(email):
        logger.info("Demo user already exists: %s", email)
        return False

    user_id = create_user(DEFAULT_NAME, email, password)["id"]

    with get_conn() as con:
        checking = _insert_account(con, user_id, "Main Checking", "checking", 250000)
        _insert_account(con, user_id, "Savings", "savings", 800000)
        expense_ids = {
            name: _insert_category(con, user_id, "expense", name, color, icon)
            for name, color, icon in EXPENSE_CATEGORIES
        }
        income_ids = {
            name: _insert_category(con, user_id, "income", name, color, icon)
            for name, color, icon in INCOME_CATEGORIES
        }

    today = dt.date.today()
    first = today.replace(day=1)

    create_entry("incomes", user_id, {
        "account_id": checking, "category_id": income_ids["Salary"], "amount": 4200.00,
        "description": "Monthly salary", "date": first, "payment_method": "bank_transfer",
        "source": "Employer", "is_recurring": True, "recurring_pattern": "monthly",
    })
    create_entry("incomes", user_id, {
        "account_id": checking, "category_id": income_ids["Freelance"], "amount": 650.00,
        "description": "Website project", "date": today, "payment_method": "bank_transfer",
    })

    for category, amount, description in (
        ("Food & Dining", 86.40, "Groceries"),
        ("Food & Dining", 32.10, "Dinner out"),
        ("Transportation", 55.00, "Fuel"),
        ("Bills & Utilities", 120.00, "Electricity"),
        ("Entertainment", 15.99, "Netflix subscription"),
    ):
        create_entry("expenses", user_id, {
            "account_id": checking, "category_id": expense_ids[category], "amount": amount,
            "description": description, "date": today, "payment_method": "card",
        })

    create_budget(user_id, {
        "category_id": expense_ids["Food & Dining"], "amount": 400.00,
        "period": "monthly", "start_date": first, "alert_threshold": 80,
    })
    create_debt(user_id, {
        "name": "Visa Card", "type": "credit_card", "principal": 3000.00,
        "current_balance": 2200.00, "interest_rate": 19.99, "minimum_payment": 90.00,
        "due_day": 15, "lender": "Bank of Example",
    })

    logger.info("Created demo user %s in DB at %s", email, db_path())
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
