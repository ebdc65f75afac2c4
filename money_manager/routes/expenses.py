# money_manager/routes/expenses.py

import datetime as dt
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from money_manager.auth import get_current_user
from money_manager.schemas import ExpenseCreate, ExpenseUpdate, FilterId, Page, PathId
from money_manager.services.budgets import check_budgets_for_expense
from money_manager.services.entries import (
    EntryError,
    create_entry,
    delete_entry,
    get_entry,
    list_entries,
    update_entry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/expenses", tags=["expenses"])

TABLE = "expenses"


@router.get("/")
def list_expenses(
    page: Page = 1,
    limit: int = Query(20, ge=1, le=100),
    category: FilterId = None,
    account: FilterId = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    sort_by: Literal["date", "amount", "description", "created_at"] = "date",
    sort_order: Literal["asc", "desc"] = "desc",
    user: dict = Depends(get_current_user),
):
    return list_entries(
        TABLE,
        user["id"],
        page=page,
        limit=limit,
        category_id=category,
        account_id=account,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{expense_id}")
def get_expense(expense_id: PathId, user: dict = Depends(get_current_user)):
    expense = get_entry(TABLE, expense_id, user["id"])
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_expense(payload: ExpenseCreate, user: dict = Depends(get_current_user)):
    try:
        expense = create_entry(TABLE, user["id"], payload.model_dump())
    except EntryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # the expense is already committed; a failed check must not undo it
    try:
        check_budgets_for_expense(
            user["id"], expense["category_id"], expense["date"], round(expense["amount"] * 100)
        )
    except Exception:
        logger.exception("Budget check failed for expense %s", expense["id"])

    return {"message": "Expense created successfully", "expense": expense}


@router.put("/{expense_id}")
def update_expense(expense_id: PathId, payload: ExpenseUpdate, user: dict = Depends(get_current_user)):
    try:
        expense = update_entry(
            TABLE, expense_id, user["id"], payload.model_dump(exclude_unset=True, exclude_none=True)
        )
    except EntryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"message": "Expense updated successfully", "expense": expense}


@router.delete("/{expense_id}")
def delete_expense(expense_id: PathId, user: dict = Depends(get_current_user)):
    if not delete_entry(TABLE, expense_id, user["id"]):
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"message": "Expense deleted successfully"}
