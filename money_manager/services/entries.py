# money_manager/services/entries.py
#
# Expenses and incomes share one shape (an amount posted against an account
# under a category), so both routers go through these helpers. `table` is
# always one of ENTRY_TABLES, never user input.

import datetime as dt
import math
import sqlite3
from typing import Optional

from money_manager.db import dump_json, from_cents, get_conn, load_json, now_iso, to_cents
from money_manager.services.balances import post_entry, reverse_entry

ENTRY_TABLES = {
    # table: (category kind, the one column the two tables don't share)
    "expenses": ("expense", "location"),
    "incomes": ("income", "source"),
}

SORT_COLUMNS = {
    "date": "e.date",
    "amount": "e.amount_cents",
    "description": "e.description",
    "created_at": "e.created_at",
}


class EntryError(ValueError):
    """A create/update referenced something the user can't post against."""


def _select(table: str) -> str:
    return f"""
        SELECT e.*,
               c.name AS category_name, c.color AS category_color, c.icon AS category_icon,
               a.name AS account_name, a.type AS account_type
        FROM {table} e
        JOIN categories c ON c.id = e.category_id
        JOIN accounts a ON a.id = e.account_id
    """


def entry_out(table: str, row: sqlite3.Row) -> dict:
    extra = ENTRY_TABLES[table][1]
    return {
        "id": row["id"],
        "amount": from_cents(row["amount_cents"]),
        "description": row["description"],
        "date": row["date"],
        "payment_method": row["payment_method"],
        "tags": load_json(row["tags"], []),
        extra: row[extra],
        "is_recurring": bool(row["is_recurring"]),
        "recurring_pattern": row["recurring_pattern"],
        "notes": row["notes"],
        "category_id": row["category_id"],
        "account_id": row["account_id"],
        "category": {
            "id": row["category_id"],
            "name": row["category_name"],
            "color": row["category_color"],
            "icon": row["category_icon"],
        },
        "account": {
            "id": row["account_id"],
            "name": row["account_name"],
            "type": row["account_type"],
        },
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def _fetch(con: sqlite3.Connection, table: str, entry_id: int, user_id: int) -> Optional[sqlite3.Row]:
    return con.execute(
        _select(table) + " WHERE e.id = ? AND e.user_id = ?", (entry_id, user_id)
    ).fetchone()


def _require_account(con: sqlite3.Connection, user_id: int, account_id: int) -> None:
    row = con.execute(
        "SELECT id FROM accounts WHERE id = ? AND user_id = ? AND is_active = 1",
        (account_id, user_id),
    ).fetchone()
    if row is None:
        raise EntryError("Account not found or inactive")


def _require_category(con: sqlite3.Connection, user_id: int, category_id: int, kind: str) -> None:
    row = con.execute(
        "SELECT id FROM categories WHERE id = ? AND user_id = ? AND kind = ? AND is_active = 1",
        (category_id, user_id, kind),
    ).fetchone()
    if row is None:
        raise EntryError(f"Invalid {kind} category")


def _to_columns(fields: dict) -> dict:
    """Map validated request fields onto storage columns."""
    cols = {}
    for key, value in fields.items():
        if key == "amount":
            cols["amount_cents"] = to_cents(value)
        elif key == "date":
            cols["date"] = value.isoformat() if isinstance(value, dt.date) else value
        elif key == "tags":
            cols["tags"] = dump_json(value)
        elif key == "is_recurring":
            cols["is_recurring"] = int(value)
        else:
            cols[key] = value
    return cols


# ---- READ ----

def list_entries(
    table: str,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    category_id: Optional[int] = None,
    account_id: Optional[int] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    sort_by: str = "date",
    sort_order: str = "desc",
) -> dict:
    where = ["e.user_id = ?"]
    params: list = [user_id]
    if category_id is not None:
        where.append("e.category_id = ?")
        params.append(category_id)
    if account_id is not None:
        where.append("e.account_id = ?")
        params.append(account_id)
    if start_date is not None:
        where.append("e.date >= ?")
        params.append(start_date.isoformat())
    if end_date is not None:
        where.append("e.date <= ?")
        params.append(end_date.isoformat())

    clause = " WHERE " + " AND ".join(where)
    order_col = SORT_COLUMNS.get(sort_by, "e.date")
    direction = "ASC" if sort_order == "asc" else "DESC"

    with get_conn() as con:
        total = con.execute(
            f"SELECT COUNT(*) AS n FROM {table} e" + clause, params
        ).fetchone()["n"]
        rows = con.execute(
            _select(table) + clause + f" ORDER BY {order_col} {direction}, e.id {direction} LIMIT ? OFFSET ?",
            (*params, limit, (page - 1) * limit),
        ).fetchall()

    return {
        table: [entry_out(table, r) for r in rows],
        "total_pages": math.ceil(total / limit) if total else 0,
        "current_page": page,
        "total": total,
    }


def get_entry(table: str, entry_id: int, user_id: int) -> Optional[dict]:
    with get_conn() as con:
        row = _fetch(con, table, entry_id, user_id)
    return entry_out(table, row) if row else None


# ---- WRITE ----

def create_entry(table: str, user_id: int, fields: dict) -> dict:
    kind = ENTRY_TABLES[table][0]
    fields = dict(fields)
    if fields.get("date") is None:
        fields["date"] = dt.date.today()
    cols = _to_columns(fields)
    ts = now_iso()
    cols["user_id"] = user_id
    cols["created_at"] = ts
    cols["updated_at"] = ts

    with get_conn() as con:
        _require_account(con, user_id, cols["account_id"])
        _require_category(con, user_id, cols["category_id"], kind)
        names = ", ".join(cols)
        marks = ", ".join("?" for _ in cols)
        cur = con.execute(f"INSERT INTO {table} ({names}) VALUES ({marks})", tuple(cols.values()))
        post_entry(con, table, cols["account_id"], cols["amount_cents"])
        row = _fetch(con, table, cur.lastrowid, user_id)
    return entry_out(table, row)


def update_entry(table: str, entry_id: int, user_id: int, changes: dict) -> Optional[dict]:
    kind = ENTRY_TABLES[table][0]
    cols = _to_columns(changes)

    with get_conn() as con:
        old = _fetch(con, table, entry_id, user_id)
        if old is None:
            return None

        if "account_id" in cols and cols["account_id"] != old["account_id"]:
            _require_account(con, user_id, cols["account_id"])
        if "category_id" in cols and cols["category_id"] != old["category_id"]:
            _require_category(con, user_id, cols["category_id"], kind)

        if cols.get("is_recurring") == 0:
            cols["recurring_pattern"] = None
        recurring = cols.get("is_recurring", old["is_recurring"])
        pattern = cols.get("recurring_pattern", old["recurring_pattern"])
        if recurring and not pattern:
            raise EntryError("recurring_pattern is required for recurring entries")

        if not cols:
            return entry_out(table, old)

        new_account = cols.get("account_id", old["account_id"])
        new_amount = cols.get("amount_cents", old["amount_cents"])
        if new_account != old["account_id"] or new_amount != old["amount_cents"]:
            reverse_entry(con, table, old["account_id"], old["amount_cents"])
            post_entry(con, table, new_account, new_amount)

        assignments = ", ".join(f"{c} = ?" for c in cols)
        con.execute(
            f"UPDATE {table} SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
            (*cols.values(), now_iso(), entry_id, user_id),
        )
        row = _fetch(con, table, entry_id, user_id)
    return entry_out(table, row)


def delete_entry(table: str, entry_id: int, user_id: int) -> bool:
    with get_conn() as con:
        old = con.execute(
            f"SELECT account_id, amount_cents FROM {table} WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        ).fetchone()
        if old is None:
            return False
        reverse_entry(con, table, old["account_id"], old["amount_cents"])
        con.execute(f"DELETE FROM {table} WHERE id = ?", (entry_id,))
    return True
