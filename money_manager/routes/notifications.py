# money_manager/routes/notifications.py

from fastapi import APIRouter, Depends, HTTPException, Query

from money_manager.auth import get_current_user
from money_manager.schemas import PathId
from money_manager.services import notifications as inbox

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/")
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    user: dict = Depends(get_current_user),
):
    return {
        "notifications": inbox.list_notifications(user["id"], limit=limit, unread_only=unread_only),
        "unread_count": inbox.unread_count(user["id"]),
    }


@router.get("/unread-count")
def unread_count(user: dict = Depends(get_current_user)):
    return {"count": inbox.unread_count(user["id"])}


@router.put("/mark-all-read")
def mark_all_read(user: dict = Depends(get_current_user)):
    updated = inbox.mark_all_as_read(user["id"])
    return {"message": "All notifications marked as read", "updated": updated}


@router.put("/{notification_id}/read")
def mark_read(notification_id: PathId, user: dict = Depends(get_current_user)):
    notification = inbox.mark_as_read(notification_id, user["id"])
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.delete("/{notification_id}")
def delete_notification(notification_id: PathId, user: dict = Depends(get_current_user)):
    if not inbox.delete_notification(notification_id, user["id"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"message": "Notification deleted"}


@router.delete("/")
def clear_all(user: dict = Depends(get_current_user)):
    deleted = inbox.clear_notifications(user["id"])
    return {"message": "All notifications cleared", "deleted": deleted}
