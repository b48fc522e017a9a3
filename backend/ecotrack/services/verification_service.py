"""Verification engine: the single approve/reject path for recycling logs.

Used by admin requests and by the auto-approval job alike, so both produce the
same side effects:

- approve: mark the log verified, credit the event's current reward to the
  user, mark the participant as attended, notify the user. One transaction.
- reject: delete the log, notify the user, remove the stored image.

The ``verified`` flag is the idempotency guard. Approval claims the log with a
conditional UPDATE, so of two concurrent approvals exactly one changes the row
and the other gets ``AlreadyVerified``.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecotrack.config import settings
from ecotrack.exceptions import (
    AlreadyVerified,
    EventNotFound,
    NotFound,
    PermissionDenied,
    StorageFailure,
)
from ecotrack.models.event import Event
from ecotrack.models.notification import NotificationType
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.recycling_log import ApprovalResult, DeletedLogSummary, RejectionResult
from ecotrack.services import notification_service, storage_service
from ecotrack.services.log_queries import log_detail

logger = logging.getLogger(__name__)

NO_REASON = "No reason provided"


def _check_verifier(db: Session, acting_id: int) -> None:
    """Only admins and the reserved system principal may verify logs."""
    if acting_id == settings.SYSTEM_USER_ID:
        return
    role = db.query(User.role).filter(User.id == acting_id).scalar()
    if role != UserRole.admin:
        raise PermissionDenied("Only admins can verify recycling logs", {"acting_id": acting_id})


def _load_pending(db: Session, log_id: int) -> RecyclingLog:
    log = db.query(RecyclingLog).filter(RecyclingLog.id == log_id).first()
    if not log:
        raise NotFound("Recycling log not found", {"log_id": log_id})
    if log.verified:
        raise AlreadyVerified("Log already approved", {"log_id": log_id})
    return log


def approve_log(db: Session, log_id: int, acting_id: int) -> ApprovalResult:
    """Verify a pending event-linked log and award the event's current reward."""
    _check_verifier(db, acting_id)
    log = _load_pending(db, log_id)

    event = None
    if log.event_id is not None:
        event = db.query(Event).filter(Event.id == log.event_id).first()
    if event is None:
        raise EventNotFound(
            "Associated event not found",
            {"log_id": log_id, "event_id": log.event_id},
        )

    reward = event.eco_points_reward
    user_id, event_id = log.user_id, log.event_id
    category, weight = log.category.value, log.weight
    auto = acting_id == settings.SYSTEM_USER_ID

    try:
        claimed = (
            db.query(RecyclingLog)
            .filter(RecyclingLog.id == log_id, RecyclingLog.verified.is_(False))
            .update(
                {
                    RecyclingLog.verified: True,
                    RecyclingLog.verified_by: acting_id,
                    RecyclingLog.verified_at: datetime.now(timezone.utc),
                    RecyclingLog.eco_points_earned: reward,
                },
                synchronize_session=False,
            )
        )
        if claimed == 0:
            db.rollback()
            raise AlreadyVerified("Log already approved", {"log_id": log_id})

        db.query(User).filter(User.id == user_id).update(
            {User.eco_points: User.eco_points + reward},
            synchronize_session=False,
        )
        db.query(EventParticipant).filter(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id,
        ).update({EventParticipant.attended: True}, synchronize_session=False)

        how = "automatically approved" if auto else "approved"
        notification_service.create_notification(
            db,
            user_id=user_id,
            title="Recycling Log Approved",
            message=f"Your recycling log ({category}, {weight}kg) has been {how}! "
                    f"You earned {reward} eco-points.",
            type=NotificationType.system,
            commit=False,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Approval of recycling log %s failed", log_id)
        raise StorageFailure("Could not approve recycling log", {"log_id": log_id}) from exc

    logger.info("Log %s approved by %s: %d points -> user %s", log_id, acting_id, reward, user_id)
    return ApprovalResult(log=log_detail(db, log_id), points_awarded=reward)


def reject_log(db: Session, log_id: int, reason: Optional[str], acting_id: int) -> RejectionResult:
    """Reject a pending log by deleting it. No rejected row is kept."""
    _check_verifier(db, acting_id)
    log = _load_pending(db, log_id)

    summary = DeletedLogSummary(id=log.id, category=log.category.value, weight=log.weight)
    user_id, image_url = log.user_id, log.image_url
    message = reason or (
        f"Your recycling log ({summary.category}, {summary.weight}kg) has been rejected, "
        "if you think this was a mistake, kindly re-submit your logs."
    )

    try:
        deleted = (
            db.query(RecyclingLog)
            .filter(RecyclingLog.id == log_id, RecyclingLog.verified.is_(False))
            .delete(synchronize_session=False)
        )
        if deleted == 0:
            db.rollback()
            raise AlreadyVerified("This log has already been verified", {"log_id": log_id})

        notification_service.create_notification(
            db,
            user_id=user_id,
            title="Recycling Log Rejected",
            message=message,
            type=NotificationType.system,
            commit=False,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Rejection of recycling log %s failed", log_id)
        raise StorageFailure("Could not reject recycling log", {"log_id": log_id}) from exc

    db.expunge(log)
    if image_url:
        storage_service.delete_image(image_url)

    logger.info("Log %s rejected by %s (reason: %s)", log_id, acting_id, reason or NO_REASON)
    return RejectionResult(reason=reason or NO_REASON, deleted_log=summary)
