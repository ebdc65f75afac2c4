# money_manager/services/context_builder.py

import datetime as dt
from typing import Optional

from money_manager.db import from_cents, get_conn
from money_manager.services.budgets import budget_out, spent_cents
from money_manager.services.periods import month_bounds


def _entries_this_month(con, table: str, user_id: int, first: str, last: str) -> list[dict]:
    rows = con.execute(
        f"""
        SELECT e.amount_cents, e.description, e.date, c.name AS category
        FROM {table} e
        JOIN categories c ON c.id = e.category_id
        WHERE e.user_id = ? AND e.date >= ? AND e.date <= ?
        ORDER BY e.date DESC, e.id DESC
        """,
        (user_id, first, last),
    ).fetchall()
    return [
        {
            "amount": from_cents(r["amount_cents"]),
            "description": r["description"],
            "date": r["date"],
            "category": r["category"],
        }
        for r in rows
    ]


def build_financial_context(user_id: int, today: Optional[dt.date] = None) -> dict:
    """Snapshot of the user's money for the current calendar month."""
    today = today or dt.date.today()
    first, last = month_bounds(today)
    first_s, last_s = first.isoformat(), last.isoformat()

    with get_conn() as con:
        expenses = _entries_this_month(con, "expenses", user_id, first_s, last_s)
        incomes = _entries_this_month(con, "incomes", user_id, first_s, last_s)
        accounts = con.execute(
            "SELECT name, type, balance_cents FROM accounts WHERE user_id = ? AND is_active = 1 ORDER BY id",
            (user_id,),
        ).fetchall()
        debts = con.execute(
            "SELECT name, principal_cents, current_balance_cents, interest_rate, total_paid_cents "
            "FROM debts WHERE user_id = ? ORDER BY id",
            (user_id,),
        ).fetchall()
        budget_rows = con.execute(
            """
            SELECT b.*, c.name AS category_name, c.color AS category_color, c.icon AS category_icon
            FROM budgets b
            JOIN categories c ON c.id = b.category_id
            WHERE b.user_id = ? AND b.is_active = 1
            ORDER BY b.id
            """,
            (user_id,),
        ).fetchall()
        budgets = [
            budget_out(b, spent_cents(con, user_id, b["category_id"], b["start_date"], b["end_date"]))
            for b in budget_rows
        ]

    return {
        "today": today.isoformat(),
        "month_label": today.strftime("%B %Y"),
        "total_funds": from_cents(sum(a["balance_cents"] for a in accounts)),
        "month_income": round(sum(i["amount"] for i in incomes), 2),
        "month_expenses": round(sum(e["amount"] for e in expenses), 2),
        "total_debt": from_cents(sum(d["current_balance_cents"] for d in debts)),
        "accounts": [
            {"name": a["name"], "type": a["type"], "balance": from_cents(a["balance_cents"])}
            for a in accounts
        ],
        "debts": [
            {
                "name": d["name"],
                "principal": from_cents(d["principal_cents"]),
                "current_balance": from_cents(d["current_balance_cents"]),
                "interest_rate": d["interest_rate"],
                "total_paid": from_cents(d["total_paid_cents"]),
            }
            for d in debts
        ],
        "expenses": expenses,
        "incomes": incomes,
        "budgets": budgets,
    }


def render_context(snapshot: dict) -> str:
    """Plain-text version of the snapshot for the model prompt."""
    parts = [
        "IMPORTANT: Use these EXACT numbers for calculations. This is the user's real financial data.",
        "",
        "Current Financial Position:",
        f"- TOTAL AVAILABLE FUNDS (all accounts): ${snapshot['total_funds']:.2f}",
        f"- Monthly Expenses: ${snapshot['month_expenses']:.2f}",
        f"- Monthly Income: ${snapshot['month_income']:.2f}",
        f"- Outstanding Debts: ${snapshot['total_debt']:.2f}",
        "",
        "Account Breakdown:",
    ]
    if snapshot["accounts"]:
        parts.extend(f"  - {a['name']}: ${a['balance']:.2f}" for a in snapshot["accounts"])
    else:
        parts.append("  - No accounts added yet")

    parts.extend(["", "Outstanding Debts:"])
    if snapshot["debts"]:
        parts.extend(f"  - {d['name']}: ${d['current_balance']:.2f} remaining" for d in snapshot["debts"])
    else:
        parts.append("  - No debts tracked")

    parts.extend(["", "Recent Expenses This Month:"])
    if snapshot["expenses"]:
        parts.extend(
            f"  - {e['category']}: ${e['amount']:.2f} ({e['description']})" for e in snapshot["expenses"][:5]
        )
    else:
        parts.append("  - No expenses recorded yet")

    return "\n".join(parts)
