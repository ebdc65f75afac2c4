# money_manager/routes/debts.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from money_manager.auth import get_current_user
from money_manager.schemas import DebtCreate, DebtPayment, DebtUpdate, PathId
from money_manager.services import debts as debt_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/debts", tags=["debts"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Debt not found")


@router.get("/")
def list_debts(user: dict = Depends(get_current_user)):
    return debt_service.list_debts(user["id"])


# ---- static paths first ----

@router.get("/reminders/upcoming")
def upcoming_reminders(user: dict = Depends(get_current_user)):
    return debt_service.upcoming_reminders(user["id"])


@router.post("/reminders/send")
def send_reminders(user: dict = Depends(get_current_user)):
    sent = debt_service.send_reminders(user["id"])
    return {"message": f"Sent {len(sent)} reminder(s)", "reminders": sent}


@router.get("/analytics/summary")
def analytics_summary(user: dict = Depends(get_current_user)):
    return debt_service.debt_summary(user["id"])


# ---- single debt ----

@router.get("/{debt_id}")
def get_debt(debt_id: PathId, user: dict = Depends(get_current_user)):
    debt = debt_service.get_debt(debt_id, user["id"])
    if debt is None:
        raise _not_found()
    return debt


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_debt(payload: DebtCreate, user: dict = Depends(get_current_user)):
    debt = debt_service.create_debt(user["id"], payload.model_dump())
    logger.info("Created debt %s for user %s", debt["id"], user["id"])
    return debt


@router.put("/{debt_id}")
def update_debt(debt_id: PathId, payload: DebtUpdate, user: dict = Depends(get_current_user)):
    debt = debt_service.update_debt(debt_id, user["id"], payload.model_dump(exclude_unset=True, exclude_none=True))
    if debt is None:
        raise _not_found()
    return debt


@router.post("/{debt_id}/payment")
def record_payment(debt_id: PathId, payload: DebtPayment, user: dict = Depends(get_current_user)):
    debt = debt_service.record_payment(debt_id, user["id"], payload.amount, payload.date)
    if debt is None:
        raise _not_found()
    return debt


@router.delete("/{debt_id}")
def delete_debt(debt_id: PathId, user: dict = Depends(get_current_user)):
    if not debt_service.delete_debt(debt_id, user["id"]):
        raise _not_found()
    return {"message": "Debt deleted successfully"}
