# money_manager/services/budgets.py

import datetime as dt
import logging
import sqlite3
from typing import Optional

from money_manager.db import from_cents, get_conn, now_iso, to_cents
from money_manager.services import mailer
from money_manager.services.notifications import notify_budget_exceeded, notify_budget_warning, user_contact
from money_manager.services.periods import period_end

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT b.*, c.name AS category_name, c.color AS category_color, c.icon AS category_icon
    FROM budgets b
    JOIN categories c ON c.id = b.category_id
"""


class BudgetError(ValueError):
    pass


def percentage(spent_cents: int, amount_cents: int) -> float:
    if amount_cents <= 0:
        return 100.0 if spent_cents > 0 else 0.0
    return spent_cents / amount_cents * 100


def spent_cents(con: sqlite3.Connection, user_id: int, category_id: int, start: str, end: str) -> int:
    row = con.execute(
        """
        SELECT COALESCE(SUM(amount_cents), 0) AS total
        FROM expenses
        WHERE user_id = ? AND category_id = ? AND date >= ? AND date <= ?
        """,
        (user_id, category_id, start, end),
    ).fetchone()
    return int(row["total"])


def budget_out(row: sqlite3.Row, spent: int) -> dict:
    amount = row["amount_cents"]
    return {
        "id": row["id"],
        "category_id": row["category_id"],
        "category": {
            "id": row["category_id"],
            "name": row["category_name"],
            "color": row["category_color"],
            "icon": row["category_icon"],
        },
        "amount": from_cents(amount),
        "period": row["period"],
        "start_date": row["start_date"],
        "end_date": row["end_date"],
        "alert_threshold": row["alert_threshold"],
        "notes": row["notes"],
        "is_active": bool(row["is_active"]),
        "spent": from_cents(spent),
        "remaining": from_cents(max(0, amount - spent)),
        "percentage_used": round(percentage(spent, amount), 2),
        "is_exceeded": spent > amount,
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def _with_spent(con: sqlite3.Connection, row: sqlite3.Row) -> dict:
    spent = spent_cents(con, row["user_id"], row["category_id"], row["start_date"], row["end_date"])
    return budget_out(row, spent)


def _fetch(con: sqlite3.Connection, budget_id: int, user_id: int) -> Optional[sqlite3.Row]:
    return con.execute(_SELECT + " WHERE b.id = ? AND b.user_id = ?", (budget_id, user_id)).fetchone()


def _require_expense_category(con: sqlite3.Connection, user_id: int, category_id: int) -> None:
    row = con.execute(
        "SELECT id FROM categories WHERE id = ? AND user_id = ? AND kind = 'expense' AND is_active = 1",
        (category_id, user_id),
    ).fetchone()
    if row is None:
        raise BudgetError("Invalid expense category")


# ---- CRUD ----

def list_budgets(user_id: int) -> list[dict]:
    with get_conn() as con:
        rows = con.execute(
            _SELECT + " WHERE b.user_id = ? AND b.is_active = 1 ORDER BY b.start_date DESC, b.id DESC",
            (user_id,),
        ).fetchall()
        return [_with_spent(con, r) for r in rows]


def get_budget(budget_id: int, user_id: int) -> Optional[dict]:
    with get_conn() as con:
        row = _fetch(con, budget_id, user_id)
        return _with_spent(con, row) if row else None


def create_budget(user_id: int, fields: dict) -> dict:
    start = fields.get("start_date") or dt.date.today()
    period = fields.get("period") or "monthly"
    ts = now_iso()
    with get_conn() as con:
        _require_expense_category(con, user_id, fields["category_id"])
        cur = con.execute(
            """
            INSERT INTO budgets (
                user_id, category_id, amount_cents, period, start_date, end_date,
                alert_threshold, notes, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                fields["category_id"],
                to_cents(fields["amount"]),
                period,
                start.isoformat(),
                period_end(start, period).isoformat(),
                fields.get("alert_threshold", 80),
                fields.get("notes") or "",
                ts,
                ts,
            ),
        )
        return _with_spent(con, _fetch(con, cur.lastrowid, user_id))


def update_budget(budget_id: int, user_id: int, changes: dict) -> Optional[dict]:
    with get_conn() as con:
        row = _fetch(con, budget_id, user_id)
        if row is None:
            return None

        cols: dict = {}
        if "category_id" in changes:
            _require_expense_category(con, user_id, changes["category_id"])
            cols["category_id"] = changes["category_id"]
        if "amount" in changes:
            cols["amount_cents"] = to_cents(changes["amount"])
        for key in ("alert_threshold", "notes"):
            if key in changes:
                cols[key] = changes[key]
        if "is_active" in changes:
            cols["is_active"] = int(changes["is_active"])

        start = changes.get("start_date") or dt.date.fromisoformat(row["start_date"])
        period = changes.get("period") or row["period"]
        cols["period"] = period
        cols["start_date"] = start.isoformat()
        cols["end_date"] = period_end(start, period).isoformat()

        assignments = ", ".join(f"{c} = ?" for c in cols)
        con.execute(
            f"UPDATE budgets SET {assignments}, updated_at = ? WHERE id = ?",
            (*cols.values(), now_iso(), budget_id),
        )
        return _with_spent(con, _fetch(con, budget_id, user_id))


def delete_budget(budget_id: int, user_id: int) -> bool:
    with get_conn() as con:
        cur = con.execute("DELETE FROM budgets WHERE id = ? AND user_id = ?", (budget_id, user_id))
        return bool(cur.rowcount)


# ---- ALERTS ----

def budget_alerts(user_id: int) -> list[dict]:
    """Active budgets at or past their alert threshold."""
    alerts = []
    for budget in list_budgets(user_id):
        # a zero threshold would otherwise flag every untouched budget
        if budget["spent"] <= 0 or budget["percentage_used"] < budget["alert_threshold"]:
            continue
        alerts.append(
            {
                "budget_id": budget["id"],
                "category": budget["category"],
                "amount": budget["amount"],
                "spent": budget["spent"],
                "percentage_used": budget["percentage_used"],
                "level": "exceeded" if budget["is_exceeded"] else "warning",
            }
        )
    return alerts


def check_budgets_for_expense(user_id: int, category_id: int, date: str, amount_cents: int) -> list[int]:
    """Notify when a new expense pushes a budget window over its threshold or its amount.

    Only crossings notify: a budget already over its limit before this expense
    stays quiet, so repeated spending doesn't flood the inbox.
    """
    created = []
    exceeded = []
    with get_conn() as con:
        rows = con.execute(
            _SELECT
            + """
            WHERE b.user_id = ? AND b.category_id = ? AND b.is_active = 1
              AND b.start_date <= ? AND b.end_date >= ?
            """,
            (user_id, category_id, date, date),
        ).fetchall()

        for row in rows:
            limit = row["amount_cents"]
            after = spent_cents(con, user_id, category_id, row["start_date"], row["end_date"])
            before = after - amount_cents
            threshold = row["alert_threshold"]

            if after > limit >= before:
                created.append(
                    notify_budget_exceeded(
                        con, user_id, row["category_name"], from_cents(limit), from_cents(after)
                    )
                )
                exceeded.append((row["category_name"], from_cents(limit), from_cents(after)))
            elif after <= limit and percentage(after, limit) >= threshold > percentage(before, limit):
                created.append(
                    notify_budget_warning(
                        con, user_id, row["category_name"], from_cents(limit), from_cents(after)
                    )
                )

        contact = user_contact(con, user_id) if exceeded else None

    if created:
        logger.info("Budget check for user %s created %d notification(s)", user_id, len(created))
    if contact is not None:
        for category_name, budget, spent in exceeded:
            mailer.send_budget_exceeded_email(contact["email"], contact["name"], category_name, budget, spent)
    return created
