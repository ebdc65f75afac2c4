# money_manager/routes/categories.py
#
# Expense and income categories live in one table split by `kind`; each kind
# gets its own router built from the same factory.

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from money_manager.auth import get_current_user
from money_manager.db import from_cents, get_conn, now_iso, to_cents
from money_manager.schemas import CategoryCreate, CategoryUpdate, PathId

logger = logging.getLogger(__name__)

DEFAULTS = {
    "expense": {"color": "#3B82F6", "icon": "shopping-cart"},
    "income": {"color": "#10B981", "icon": "dollar-sign"},
}


def category_out(row: sqlite3.Row) -> dict:
    out = {
        "id": row["id"],
        "name": row["name"],
        "description": row["description"],
        "color": row["color"],
        "icon": row["icon"],
        "is_default": bool(row["is_default"]),
        "is_active": bool(row["is_active"]),
        "parent_id": row["parent_id"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }
    if row["kind"] == "expense":
        out["budget_limit"] = from_cents(row["budget_limit_cents"])
        out["budget_period"] = row["budget_period"]
    return out


def _check_parent(con: sqlite3.Connection, user_id: int, kind: str, parent_id: int, self_id: Optional[int] = None):
    if parent_id == self_id:
        raise HTTPException(status_code=400, detail="A category cannot be its own parent")
    row = con.execute(
        "SELECT id FROM categories WHERE id = ? AND user_id = ? AND kind = ? AND is_active = 1",
        (parent_id, user_id, kind),
    ).fetchone()
    if row is None:
        raise HTTPException(status_code=400, detail="Invalid parent category")


def _clear_other_defaults(con: sqlite3.Connection, user_id: int, kind: str, keep_id: int) -> None:
    con.execute(
        "UPDATE categories SET is_default = 0 WHERE user_id = ? AND kind = ? AND id != ? AND is_default = 1",
        (user_id, kind, keep_id),
    )


def build_router(kind: str, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[f"{kind}-categories"])
    not_found = f"{kind.capitalize()} category not found"

    def get_owned(con: sqlite3.Connection, category_id: int, user_id: int) -> sqlite3.Row:
        row = con.execute(
            "SELECT * FROM categories WHERE id = ? AND user_id = ? AND kind = ?",
            (category_id, user_id, kind),
        ).fetchone()
        if row is None:
            raise HTTPException(status_code=404, detail=not_found)
        return row

    @router.get("/")
    def list_categories(user: dict = Depends(get_current_user)):
        with get_conn() as con:
            rows = con.execute(
                "SELECT * FROM categories WHERE user_id = ? AND kind = ? AND is_active = 1 ORDER BY name COLLATE NOCASE",
                (user["id"], kind),
            ).fetchall()
        return [category_out(r) for r in rows]

    @router.get("/{category_id}")
    def get_category(category_id: PathId, user: dict = Depends(get_current_user)):
        with get_conn() as con:
            row = get_owned(con, category_id, user["id"])
        return category_out(row)

    @router.post("/", status_code=status.HTTP_201_CREATED)
    def create_category(payload: CategoryCreate, user: dict = Depends(get_current_user)):
        budget_limit, budget_period = None, None
        if kind == "expense":
            budget_limit = to_cents(payload.budget_limit) if payload.budget_limit is not None else None
            budget_period = payload.budget_period or "monthly"

        ts = now_iso()
        with get_conn() as con:
            if payload.parent_id is not None:
                _check_parent(con, user["id"], kind, payload.parent_id)
            cur = con.execute(
                """
                INSERT INTO categories (
                    user_id, kind, name, description, color, icon, is_default, parent_id,
                    budget_limit_cents, budget_period, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user["id"],
                    kind,
                    payload.name,
                    payload.description,
                    payload.color or DEFAULTS[kind]["color"],
                    payload.icon or DEFAULTS[kind]["icon"],
                    int(payload.is_default),
                    payload.parent_id,
                    budget_limit,
                    budget_period,
                    ts,
                    ts,
                ),
            )
            if payload.is_default:
                _clear_other_defaults(con, user["id"], kind, cur.lastrowid)
            row = get_owned(con, cur.lastrowid, user["id"])
        return {"message": "Category created successfully", "category": category_out(row)}

    @router.put("/{category_id}")
    def update_category(category_id: PathId, payload: CategoryUpdate, user: dict = Depends(get_current_user)):
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if kind != "expense":
            changes.pop("budget_limit", None)
            changes.pop("budget_period", None)
        if "budget_limit" in changes:
            changes["budget_limit_cents"] = to_cents(changes.pop("budget_limit"))
        if "is_default" in changes:
            changes["is_default"] = int(changes["is_default"])

        with get_conn() as con:
            get_owned(con, category_id, user["id"])
            if "parent_id" in changes:
                _check_parent(con, user["id"], kind, changes["parent_id"], self_id=category_id)
            if changes:
                assignments = ", ".join(f"{c} = ?" for c in changes)
                con.execute(
                    f"UPDATE categories SET {assignments}, updated_at = ? WHERE id = ?",
                    (*changes.values(), now_iso(), category_id),
                )
            if changes.get("is_default"):
                _clear_other_defaults(con, user["id"], kind, category_id)
            row = get_owned(con, category_id, user["id"])
        return {"message": "Category updated successfully", "category": category_out(row)}

    @router.delete("/{category_id}")
    def delete_category(category_id: PathId, user: dict = Depends(get_current_user)):
        with get_conn() as con:
            get_owned(con, category_id, user["id"])
            con.execute(
                "UPDATE categories SET is_active = 0, is_default = 0, updated_at = ? WHERE id = ?",
                (now_iso(), category_id),
            )
        logger.info("Deactivated %s category %s for user %s", kind, category_id, user["id"])
        return {"message": "Category deleted successfully"}

    return router


expense_router = build_router("expense", "/api/expense-categories")
income_router = build_router("income", "/api/income-categories")
