# money_manager/services/debts.py

import datetime as dt
import logging
import sqlite3
from typing import Optional

from money_manager.db import from_cents, get_conn, now_iso, to_cents
from money_manager.services import mailer
from money_manager.services.notifications import notify_debt_due_soon, user_contact
from money_manager.services.periods import add_months, next_payment_date

logger = logging.getLogger(__name__)

MAX_PAYOFF_MONTHS = 600  # 50 years

# request field -> (column, converter)
_UPDATABLE = {
    "name": ("name", None),
    "type": ("type", None),
    "current_balance": ("current_balance_cents", to_cents),
    "interest_rate": ("interest_rate", None),
    "minimum_payment": ("minimum_payment_cents", to_cents),
    "due_day": ("due_day", None),
    "lender": ("lender", None),
    "account_number": ("account_number", None),
    "status": ("status", None),
    "reminder_enabled": ("reminder_enabled", int),
    "reminder_days_before": ("reminder_days_before", None),
    "notes": ("notes", None),
    "color": ("color", None),
    "total_paid": ("total_paid_cents", to_cents),
    "last_payment_date": ("last_payment_date", dt.date.isoformat),
    "last_payment_amount": ("last_payment_amount_cents", to_cents),
}


def estimate_payoff(
    balance_cents: int,
    annual_rate: float,
    payment_cents: int,
    start: Optional[dt.date] = None,
) -> Optional[dt.date]:
    """Month the balance reaches zero paying `payment_cents` monthly, or None if it never does."""
    start = start or dt.date.today()
    if balance_cents <= 0:
        return start

    monthly_rate = annual_rate / 100 / 12
    balance = float(balance_cents)
    months = 0
    while balance > 0:
        if months >= MAX_PAYOFF_MONTHS:
            return None
        interest = balance * monthly_rate
        principal = min(payment_cents - interest, balance)
        if principal <= 0:
            return None
        balance -= principal
        months += 1
    return add_months(start, months)


def _estimate_for_row(row: sqlite3.Row) -> Optional[str]:
    estimate = estimate_payoff(
        row["current_balance_cents"], row["interest_rate"], row["minimum_payment_cents"]
    )
    return estimate.isoformat() if estimate else None


def debt_out(row: sqlite3.Row, today: Optional[dt.date] = None) -> dict:
    principal = row["principal_cents"]
    balance = row["current_balance_cents"]
    total_paid = row["total_paid_cents"]
    next_payment = None
    if row["status"] == "active":
        next_payment = next_payment_date(row["due_day"], today).isoformat()

    return {
        "id": row["id"],
        "name": row["name"],
        "type": row["type"],
        "principal": from_cents(principal),
        "current_balance": from_cents(balance),
        "interest_rate": row["interest_rate"],
        "minimum_payment": from_cents(row["minimum_payment_cents"]),
        "due_day": row["due_day"],
        "start_date": row["start_date"],
        "payoff_date": row["payoff_date"],
        "estimated_payoff_date": row["estimated_payoff_date"],
        "lender": row["lender"],
        "account_number": row["account_number"],
        "status": row["status"],
        "reminder_enabled": bool(row["reminder_enabled"]),
        "reminder_days_before": row["reminder_days_before"],
        "last_payment_date": row["last_payment_date"],
        "last_payment_amount": from_cents(row["last_payment_amount_cents"]),
        "total_paid": from_cents(total_paid),
        "notes": row["notes"],
        "color": row["color"],
        "total_interest_paid": from_cents(max(0, total_paid - (principal - balance))),
        "percentage_paid_off": round((principal - balance) / principal * 100, 2) if principal > 0 else 0.0,
        "next_payment_date": next_payment,
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def _fetch(con: sqlite3.Connection, debt_id: int, user_id: int) -> Optional[sqlite3.Row]:
    return con.execute("SELECT * FROM debts WHERE id = ? AND user_id = ?", (debt_id, user_id)).fetchone()


def _active_rows(con: sqlite3.Connection, user_id: int, reminders_only: bool = False) -> list:
    sql = "SELECT * FROM debts WHERE user_id = ? AND status = 'active'"
    if reminders_only:
        sql += " AND reminder_enabled = 1"
    return con.execute(sql, (user_id,)).fetchall()


# ---- CRUD ----

def list_debts(user_id: int) -> list[dict]:
    with get_conn() as con:
        rows = con.execute(
            "SELECT * FROM debts WHERE user_id = ? ORDER BY due_day ASC, current_balance_cents DESC",
            (user_id,),
        ).fetchall()
    return [debt_out(r) for r in rows]


def get_debt(debt_id: int, user_id: int) -> Optional[dict]:
    with get_conn() as con:
        row = _fetch(con, debt_id, user_id)
    return debt_out(row) if row else None


def create_debt(user_id: int, fields: dict) -> dict:
    principal = to_cents(fields["principal"])
    balance = to_cents(fields["current_balance"])
    payment = to_cents(fields["minimum_payment"])
    if fields.get("total_paid") is not None:
        total_paid = to_cents(fields["total_paid"])
    else:
        total_paid = max(0, principal - balance)
    estimate = estimate_payoff(balance, fields["interest_rate"], payment)
    start = fields.get("start_date") or dt.date.today()
    ts = now_iso()

    with get_conn() as con:
        cur = con.execute(
            """
            INSERT INTO debts (
                user_id, name, type, principal_cents, current_balance_cents, interest_rate,
                minimum_payment_cents, due_day, start_date, estimated_payoff_date, lender,
                account_number, status, reminder_enabled, reminder_days_before,
                total_paid_cents, notes, color, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                fields["name"],
                fields["type"],
                principal,
                balance,
                fields["interest_rate"],
                payment,
                fields["due_day"],
                start.isoformat(),
                estimate.isoformat() if estimate else None,
                fields.get("lender"),
                fields.get("account_number"),
                fields.get("status") or "active",
                int(fields.get("reminder_enabled", True)),
                fields.get("reminder_days_before", 3),
                total_paid,
                fields.get("notes"),
                fields.get("color") or "#EF4444",
                ts,
                ts,
            ),
        )
        row = _fetch(con, cur.lastrowid, user_id)
    return debt_out(row)


def update_debt(debt_id: int, user_id: int, changes: dict) -> Optional[dict]:
    cols = {}
    for field, value in changes.items():
        if field not in _UPDATABLE:
            continue
        column, convert = _UPDATABLE[field]
        cols[column] = convert(value) if convert else value

    with get_conn() as con:
        row = _fetch(con, debt_id, user_id)
        if row is None:
            return None
        if cols:
            assignments = ", ".join(f"{c} = ?" for c in cols)
            con.execute(
                f"UPDATE debts SET {assignments}, updated_at = ? WHERE id = ?",
                (*cols.values(), now_iso(), debt_id),
            )
            row = _fetch(con, debt_id, user_id)
        con.execute(
            "UPDATE debts SET estimated_payoff_date = ? WHERE id = ?",
            (_estimate_for_row(row), debt_id),
        )
        row = _fetch(con, debt_id, user_id)
    return debt_out(row)


def record_payment(debt_id: int, user_id: int, amount: float, date: Optional[dt.date] = None) -> Optional[dict]:
    paid = to_cents(amount)
    paid_on = (date or dt.date.today()).isoformat()
    with get_conn() as con:
        row = _fetch(con, debt_id, user_id)
        if row is None:
            return None

        balance = max(0, row["current_balance_cents"] - paid)
        status = row["status"]
        payoff_date = row["payoff_date"]
        if balance == 0:
            status = "paid_off"
            payoff_date = paid_on

        estimate = estimate_payoff(balance, row["interest_rate"], row["minimum_payment_cents"])
        con.execute(
            """
            UPDATE debts
            SET current_balance_cents = ?, total_paid_cents = total_paid_cents + ?,
                last_payment_date = ?, last_payment_amount_cents = ?, status = ?,
                payoff_date = ?, estimated_payoff_date = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                balance,
                paid,
                paid_on,
                paid,
                status,
                payoff_date,
                estimate.isoformat() if estimate else None,
                now_iso(),
                debt_id,
            ),
        )
        row = _fetch(con, debt_id, user_id)
    return debt_out(row)


def delete_debt(debt_id: int, user_id: int) -> bool:
    with get_conn() as con:
        cur = con.execute("DELETE FROM debts WHERE id = ? AND user_id = ?", (debt_id, user_id))
        return bool(cur.rowcount)


# ---- REMINDERS ----

def _due_soon(rows: list, today: dt.date) -> list[tuple[sqlite3.Row, dt.date, int]]:
    due = []
    for row in rows:
        next_payment = next_payment_date(row["due_day"], today)
        days_until_due = (next_payment - today).days
        if 0 <= days_until_due <= row["reminder_days_before"]:
            due.append((row, next_payment, days_until_due))
    return due


def upcoming_reminders(user_id: int, today: Optional[dt.date] = None) -> list[dict]:
    today = today or dt.date.today()
    with get_conn() as con:
        rows = _active_rows(con, user_id, reminders_only=True)

    reminders = []
    for row, due_date, days in _due_soon(rows, today):
        if days == 0:
            message = f"Payment due today for {row['name']}!"
        else:
            message = f"Payment for {row['name']} due in {days} day{'s' if days > 1 else ''}"
        reminders.append(
            {
                "debt_id": row["id"],
                "name": row["name"],
                "type": row["type"],
                "minimum_payment": from_cents(row["minimum_payment_cents"]),
                "due_date": due_date.isoformat(),
                "days_until_due": days,
                "message": message,
            }
        )
    return reminders


def send_reminders(user_id: int, today: Optional[dt.date] = None) -> list[dict]:
    today = today or dt.date.today()
    sent = []
    with get_conn() as con:
        contact = user_contact(con, user_id)
        for row, due_date, days in _due_soon(_active_rows(con, user_id, reminders_only=True), today):
            notify_debt_due_soon(
                con,
                user_id,
                row["name"],
                due_date.isoformat(),
                from_cents(row["minimum_payment_cents"]),
                days,
            )
            sent.append(
                {
                    "debt_name": row["name"],
                    "due_date": due_date.isoformat(),
                    "days_until_due": days,
                    "minimum_payment": from_cents(row["minimum_payment_cents"]),
                }
            )
    logger.info("Sent %d debt reminder(s) for user %s", len(sent), user_id)
    if contact is not None:
        for reminder in sent:
            mailer.send_debt_reminder_email(
                contact["email"],
                contact["name"],
                reminder["debt_name"],
                reminder["due_date"],
                reminder["minimum_payment"],
            )
    return sent


# ---- ANALYTICS ----

def debt_summary(user_id: int) -> dict:
    """Totals over the user's active debts."""
    with get_conn() as con:
        rows = _active_rows(con, user_id)

    total_debt = sum(r["current_balance_cents"] for r in rows)
    total_principal = sum(r["principal_cents"] for r in rows)
    total_paid = sum(r["total_paid_cents"] for r in rows)
    total_minimum = sum(r["minimum_payment_cents"] for r in rows)
    weighted = sum(r["interest_rate"] * r["current_balance_cents"] for r in rows)

    by_type: dict[str, dict] = {}
    for r in rows:
        bucket = by_type.setdefault(r["type"], {"count": 0, "total_balance": 0, "total_min_payment": 0})
        bucket["count"] += 1
        bucket["total_balance"] += r["current_balance_cents"]
        bucket["total_min_payment"] += r["minimum_payment_cents"]
    for bucket in by_type.values():
        bucket["total_balance"] = from_cents(bucket["total_balance"])
        bucket["total_min_payment"] = from_cents(bucket["total_min_payment"])

    return {
        "total_debt": from_cents(total_debt),
        "total_principal": from_cents(total_principal),
        "total_paid": from_cents(total_paid),
        "total_monthly_payment": from_cents(total_minimum),
        "avg_interest_rate": round(weighted / total_debt, 2) if total_debt > 0 else 0.0,
        "debt_count": len(rows),
        "debt_by_type": by_type,
        "percentage_paid_off": (
            round((total_principal - total_debt) / total_principal * 100, 2) if total_principal > 0 else 0.0
        ),
    }
