"""Notification collaborator: persists in-app notifications for users."""
import logging
from typing import Union

from sqlalchemy.orm import Session

from ecotrack.exceptions import NotFound
from ecotrack.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type: Union[NotificationType, str] = NotificationType.system,
    commit: bool = True,
) -> Notification:
    """Add a notification. With ``commit=False`` it joins the caller's transaction."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType(type),
        read=False,
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    return notification


def list_notifications(db: Session, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: int, user_id: int) -> Notification:
    notification = _get_owned(db, notification_id, user_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("Marked %d notification(s) read for user %s", updated, user_id)
    return updated


def delete_notification(db: Session, notification_id: int, user_id: int) -> None:
    notification = _get_owned(db, notification_id, user_id)
    db.delete(notification)
    db.commit()


def _get_owned(db: Session, notification_id: int, user_id: int) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFound("Notification not found", {"notification_id": notification_id})
    return notification
