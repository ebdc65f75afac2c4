# money_manager/routes/users.py

import datetime as dt

from fastapi import APIRouter, Depends

from money_manager.auth import get_current_user
from money_manager.db import from_cents, get_conn
from money_manager.services.entries import list_entries

router = APIRouter(prefix="/api/users", tags=["users"])


def _total_since(con, table: str, user_id: int, since: dt.date) -> float:
    row = con.execute(
        f"SELECT COALESCE(SUM(amount_cents), 0) AS total FROM {table} WHERE user_id = ? AND date >= ?",
        (user_id, since.isoformat()),
    ).fetchone()
    return from_cents(row["total"])


@router.get("/dashboard")
def dashboard(user: dict = Depends(get_current_user)):
    """Balances, month/year totals and the latest transactions."""
    today = dt.date.today()
    start_of_month = today.replace(day=1)
    start_of_year = today.replace(month=1, day=1)

    with get_conn() as con:
        accounts = con.execute(
            "SELECT balance_cents FROM accounts WHERE user_id = ? AND is_active = 1", (user["id"],)
        ).fetchall()
        monthly_expenses = _total_since(con, "expenses", user["id"], start_of_month)
        monthly_income = _total_since(con, "incomes", user["id"], start_of_month)
        yearly_expenses = _total_since(con, "expenses", user["id"], start_of_year)
        yearly_income = _total_since(con, "incomes", user["id"], start_of_year)

    recent = []
    for table, kind in (("expenses", "expense"), ("incomes", "income")):
        for item in list_entries(table, user["id"], limit=5)[table]:
            item["kind"] = kind
            recent.append(item)
    recent.sort(key=lambda t: (t["date"], t["created_at"]), reverse=True)

    return {
        "total_balance": from_cents(sum(a["balance_cents"] for a in accounts)),
        "monthly_expenses": monthly_expenses,
        "monthly_income": monthly_income,
        "yearly_expenses": yearly_expenses,
        "yearly_income": yearly_income,
        "accounts": len(accounts),
        "recent_transactions": recent[:10],
    }
