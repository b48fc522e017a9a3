"""Notification API routes for the current user."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.dependencies import get_current_user
from ecotrack.models.user import User
from ecotrack.schemas.notification import NotificationOut, UnreadCount
from ecotrack.services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[NotificationOut])
def list_notifications(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """All notifications for the current user, newest first."""
    return notification_service.list_notifications(db, user.id)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return UnreadCount(unread_count=notification_service.unread_count(db, user.id))


@router.patch("/read-all")
def mark_all_read(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = notification_service.mark_all_read(db, user.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(notification_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return notification_service.mark_read(db, notification_id, user.id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notification_service.delete_notification(db, notification_id, user.id)
