# money_manager/services/notifications.py

import json
import sqlite3
from typing import Optional

from money_manager.db import get_conn, load_json, now_iso


def notification_out(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "type": row["type"],
        "title": row["title"],
        "message": row["message"],
        "priority": row["priority"],
        "is_read": bool(row["is_read"]),
        "metadata": load_json(row["metadata"], {}),
        "action_url": row["action_url"],
        "icon": row["icon"],
        "created_at": row["created_at"],
    }


def create_notification(
    con: sqlite3.Connection,
    user_id: int,
    type_: str,
    title: str,
    message: str,
    priority: str = "medium",
    icon: str = "info",
    action_url: str = "",
    metadata: Optional[dict] = None,
) -> int:
    """Insert a notification on the caller's connection so it joins their transaction."""
    cur = con.execute(
        """
        INSERT INTO notifications (
            user_id, type, title, message, priority, metadata, action_url, icon, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            type_,
            title[:100],
            message[:500],
            priority,
            json.dumps(metadata or {}),
            action_url,
            icon,
            now_iso(),
        ),
    )
    return cur.lastrowid


def user_contact(con, user_id: int) -> Optional[sqlite3.Row]:
    """Name and email address for outbound messages."""
    return con.execute("SELECT name, email FROM users WHERE id = ?", (user_id,)).fetchone()


def notify_budget_exceeded(con, user_id: int, category_name: str, budget: float, spent: float) -> int:
    exceeded_by = spent - budget
    percentage = (spent / budget) * 100 if budget > 0 else 100.0
    return create_notification(
        con,
        user_id,
        "budget_exceeded",
        "Budget Exceeded",
        f"You've exceeded your {category_name} budget by ${exceeded_by:.2f} ({percentage:.1f}%)",
        priority="high",
        icon="warning",
        action_url="/budgets",
        metadata={
            "category_name": category_name,
            "budget_amount": budget,
            "spent_amount": spent,
            "exceeded_by": round(exceeded_by, 2),
        },
    )


def notify_budget_warning(con, user_id: int, category_name: str, budget: float, spent: float) -> int:
    percentage = (spent / budget) * 100 if budget > 0 else 0.0
    remaining = budget - spent
    return create_notification(
        con,
        user_id,
        "budget_warning",
        "Budget Warning",
        f"You've used {percentage:.1f}% of your {category_name} budget. ${remaining:.2f} remaining.",
        priority="medium",
        icon="alert",
        action_url="/budgets",
        metadata={
            "category_name": category_name,
            "budget_amount": budget,
            "spent_amount": spent,
            "remaining": round(remaining, 2),
        },
    )


def notify_debt_due_soon(
    con, user_id: int, debt_name: str, due_date: str, amount: float, days_until_due: int
) -> int:
    if days_until_due == 0:
        when = "today"
    else:
        when = f"in {days_until_due} day{'s' if days_until_due > 1 else ''}"
    return create_notification(
        con,
        user_id,
        "debt_due_soon",
        "Payment Due Soon",
        f"Your {debt_name} payment of ${amount:.2f} is due {when}",
        priority="urgent" if days_until_due <= 1 else "high",
        icon="alert",
        action_url="/debts",
        metadata={
            "debt_name": debt_name,
            "due_date": due_date,
            "amount": amount,
            "days_until_due": days_until_due,
        },
    )


# ---- READ / STATE CHANGES ----

def list_notifications(user_id: int, limit: int = 50, unread_only: bool = False) -> list[dict]:
    sql = "SELECT * FROM notifications WHERE user_id = ?"
    if unread_only:
        sql += " AND is_read = 0"
    sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
    with get_conn() as con:
        rows = con.execute(sql, (user_id, limit)).fetchall()
    return [notification_out(r) for r in rows]


def unread_count(user_id: int) -> int:
    with get_conn() as con:
        row = con.execute(
            "SELECT COUNT(*) AS n FROM notifications WHERE user_id = ? AND is_read = 0",
            (user_id,),
        ).fetchone()
    return int(row["n"])


def mark_as_read(notification_id: int, user_id: int) -> Optional[dict]:
    with get_conn() as con:
        cur = con.execute(
            "UPDATE notifications SET is_read = 1 WHERE id = ? AND user_id = ?",
            (notification_id, user_id),
        )
        if not cur.rowcount:
            return None
        row = con.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
    return notification_out(row)


def mark_all_as_read(user_id: int) -> int:
    with get_conn() as con:
        cur = con.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
            (user_id,),
        )
        return cur.rowcount


def delete_notification(notification_id: int, user_id: int) -> bool:
    with get_conn() as con:
        cur = con.execute(
            "DELETE FROM notifications WHERE id = ? AND user_id = ?",
            (notification_id, user_id),
        )
        return bool(cur.rowcount)


def clear_notifications(user_id: int) -> int:
    with get_conn() as con:
        cur = con.execute("DELETE FROM notifications WHERE user_id = ?", (user_id,))
        return cur.rowcount
