# money_manager/services/balances.py
#
# Account balances are a single running field. Every income/expense mutation
# posts or reverses its amount here on the same connection, so the record
# change and the balance change commit (or roll back) together.

import sqlite3

from money_manager.db import now_iso

# expense entries take money out, income entries put it in
SIGN = {"expenses": -1, "incomes": 1}


def adjust_balance(con: sqlite3.Connection, account_id: int, delta_cents: int) -> None:
    if not delta_cents:
        return
    con.execute(
        "UPDATE accounts SET balance_cents = balance_cents + ?, updated_at = ? WHERE id = ?",
        (delta_cents, now_iso(), account_id),
    )


def post_entry(con: sqlite3.Connection, table: str, account_id: int, amount_cents: int) -> None:
    adjust_balance(con, account_id, SIGN[table] * amount_cents)


def reverse_entry(con: sqlite3.Connection, table: str, account_id: int, amount_cents: int) -> None:
    adjust_balance(con, account_id, -SIGN[table] * amount_cents)
