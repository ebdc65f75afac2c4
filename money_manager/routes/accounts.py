# money_manager/routes/accounts.py

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, status

from money_manager.auth import get_current_user
from money_manager.db import from_cents, get_conn, now_iso, to_cents
from money_manager.schemas import AccountCreate, AccountUpdate, PathId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def account_out(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "name": row["name"],
        "type": row["type"],
        "balance": from_cents(row["balance_cents"]),
        "currency": row["currency"],
        "description": row["description"],
        "is_active": bool(row["is_active"]),
        "color": row["color"],
        "icon": row["icon"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def _get_owned(con: sqlite3.Connection, account_id: int, user_id: int) -> sqlite3.Row:
    row = con.execute(
        "SELECT * FROM accounts WHERE id = ? AND user_id = ?", (account_id, user_id)
    ).fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return row


@router.get("/")
def list_accounts(user: dict = Depends(get_current_user)):
    with get_conn() as con:
        rows = con.execute(
            "SELECT * FROM accounts WHERE user_id = ? AND is_active = 1 ORDER BY created_at DESC, id DESC",
            (user["id"],),
        ).fetchall()
    return [account_out(r) for r in rows]


@router.get("/{account_id}")
def get_account(account_id: PathId, user: dict = Depends(get_current_user)):
    with get_conn() as con:
        row = _get_owned(con, account_id, user["id"])
    return account_out(row)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_account(payload: AccountCreate, user: dict = Depends(get_current_user)):
    ts = now_iso()
    with get_conn() as con:
        cur = con.execute(
            """
            INSERT INTO accounts (
                user_id, name, type, balance_cents, currency, description, color, icon,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user["id"],
                payload.name,
                payload.type,
                to_cents(payload.balance),
                payload.currency or user["currency"],
                payload.description,
                payload.color or "#3B82F6",
                payload.icon or "wallet",
                ts,
                ts,
            ),
        )
        row = _get_owned(con, cur.lastrowid, user["id"])
    return {"message": "Account created successfully", "account": account_out(row)}


@router.put("/{account_id}")
def update_account(account_id: PathId, payload: AccountUpdate, user: dict = Depends(get_current_user)):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "balance" in changes:
        # a manual edit resets the running balance
        changes["balance_cents"] = to_cents(changes.pop("balance"))
    if "is_active" in changes:
        changes["is_active"] = int(changes["is_active"])

    with get_conn() as con:
        _get_owned(con, account_id, user["id"])
        if changes:
            assignments = ", ".join(f"{c} = ?" for c in changes)
            con.execute(
                f"UPDATE accounts SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), now_iso(), account_id),
            )
        row = _get_owned(con, account_id, user["id"])
    return {"message": "Account updated successfully", "account": account_out(row)}


@router.delete("/{account_id}")
def delete_account(account_id: PathId, user: dict = Depends(get_current_user)):
    with get_conn() as con:
        _get_owned(con, account_id, user["id"])
        con.execute(
            "UPDATE accounts SET is_active = 0, updated_at = ? WHERE id = ?",
            (now_iso(), account_id),
        )
    logger.info("Deactivated account %s for user %s", account_id, user["id"])
    return {"message": "Account deleted successfully"}
