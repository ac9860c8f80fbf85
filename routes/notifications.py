from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from database import get_db
from models.notification import Notification
from utils.dependencies import AuthPayload, authenticate
from utils.errors import AppError

router = APIRouter(prefix="/notifications", tags=["Notifications"])

NOTIFICATION_LIST_LIMIT = 50


@router.get("")
def get_notifications(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Latest notifications, newest first"""
    notifications = db.query(Notification) \
        .filter(Notification.user_id == auth.user_id) \
        .order_by(Notification.created_at.desc(), Notification.notification_id.desc()) \
        .limit(NOTIFICATION_LIST_LIMIT) \
        .all()

    return {"notifications": [n.to_dict() for n in notifications]}


@router.get("/unread-count")
def get_unread_count(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    count = db.query(func.count(Notification.notification_id)) \
        .filter(
            Notification.user_id == auth.user_id,
            Notification.is_read == False
        ) \
        .scalar()

    return {"unreadCount": int(count or 0)}


@router.patch("/mark-all-read")
def mark_all_as_read(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    updated = db.query(Notification) \
        .filter(
            Notification.user_id == auth.user_id,
            Notification.is_read == False
        ) \
        .update({Notification.is_read: True}, synchronize_session=False)
    db.commit()

    return {"updated": updated}


@router.patch("/{notification_id}/read")
def mark_as_read(
    notification_id: int,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    notification = db.query(Notification).filter(
        Notification.notification_id == notification_id,
        Notification.user_id == auth.user_id
    ).first()
    if not notification:
        raise AppError.not_found("Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)

    return {"notification": notification.to_dict()}
