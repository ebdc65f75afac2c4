# money_manager/routes/budgets.py

from fastapi import APIRouter, Depends, HTTPException, status

from money_manager.auth import get_current_user
from money_manager.schemas import BudgetCreate, BudgetUpdate, PathId
from money_manager.services.budgets import (
    BudgetError,
    budget_alerts,
    create_budget,
    delete_budget,
    get_budget,
    list_budgets,
    update_budget,
)

router = APIRouter(prefix="/api/budgets", tags=["budgets"])


@router.get("/")
def list_all(user: dict = Depends(get_current_user)):
    return list_budgets(user["id"])


# declared before /{budget_id} so "alerts" isn't parsed as an id
@router.get("/alerts/check")
def check_alerts(user: dict = Depends(get_current_user)):
    return budget_alerts(user["id"])


@router.get("/{budget_id}")
def get_one(budget_id: PathId, user: dict = Depends(get_current_user)):
    budget = get_budget(budget_id, user["id"])
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.post("/", status_code=status.HTTP_201_CREATED)
def create(payload: BudgetCreate, user: dict = Depends(get_current_user)):
    try:
        return create_budget(user["id"], payload.model_dump())
    except BudgetError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{budget_id}")
def update(budget_id: PathId, payload: BudgetUpdate, user: dict = Depends(get_current_user)):
    try:
        budget = update_budget(budget_id, user["id"], payload.model_dump(exclude_unset=True, exclude_none=True))
    except BudgetError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.delete("/{budget_id}")
def delete(budget_id: PathId, user: dict = Depends(get_current_user)):
    if not delete_budget(budget_id, user["id"]):
        raise HTTPException(status_code=404, detail="Budget not found")
    return {"message": "Budget deleted successfully"}
