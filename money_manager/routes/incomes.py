# money_manager/routes/incomes.py

import datetime as dt
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from money_manager.auth import get_current_user
from money_manager.schemas import FilterId, IncomeCreate, IncomeUpdate, Page, PathId
from money_manager.services.entries import (
    EntryError,
    create_entry,
    delete_entry,
    get_entry,
    list_entries,
    update_entry,
)

router = APIRouter(prefix="/api/incomes", tags=["incomes"])

TABLE = "incomes"


@router.get("/")
def list_incomes(
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


@router.get("/{income_id}")
def get_income(income_id: PathId, user: dict = Depends(get_current_user)):
    income = get_entry(TABLE, income_id, user["id"])
    if income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return income


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_income(payload: IncomeCreate, user: dict = Depends(get_current_user)):
    try:
        income = create_entry(TABLE, user["id"], payload.model_dump())
    except EntryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Income created successfully", "income": income}


@router.put("/{income_id}")
def update_income(income_id: PathId, payload: IncomeUpdate, user: dict = Depends(get_current_user)):
    try:
        income = update_entry(
            TABLE, income_id, user["id"], payload.model_dump(exclude_unset=True, exclude_none=True)
        )
    except EntryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return {"message": "Income updated successfully", "income": income}


@router.delete("/{income_id}")
def delete_income(income_id: PathId, user: dict = Depends(get_current_user)):
    if not delete_entry(TABLE, income_id, user["id"]):
        raise HTTPException(status_code=404, detail="Income not found")
    return {"message": "Income deleted successfully"}
