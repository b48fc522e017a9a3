"""Recycling-log submission: validation and the duplicate policy.

Duplicate policy:
- event-linked logs: one row per (user, event), whatever its state. Rejection
  deletes the row, so a rejected user may submit again.
- free-standing logs: one row per (user, category, weight), with no time window.
"""
import logging
import math
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecotrack.exceptions import (
    DuplicateSubmission,
    EventNotFound,
    NotFound,
    NotRegistered,
    PermissionDenied,
    StorageFailure,
    ValidationFailed,
)
from ecotrack.models.event import Event
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog, WasteCategory
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.recycling_log import RecyclingLogDetail
from ecotrack.services import storage_service
from ecotrack.services.log_queries import log_detail

logger = logging.getLogger(__name__)

VALID_CATEGORIES = [c.value for c in WasteCategory]
SUBMITTER_ROLES = (UserRole.student, UserRole.volunteer)


def _parse_category(category: Optional[str]) -> WasteCategory:
    if category not in VALID_CATEGORIES:
        raise ValidationFailed(
            field="category",
            rule="choice",
            message="Invalid category",
            received=category,
            valid=VALID_CATEGORIES,
        )
    return WasteCategory(category)


def _parse_weight(weight: Any) -> float:
    try:
        parsed = float(weight)
    except (TypeError, ValueError):
        parsed = math.nan
    if not math.isfinite(parsed):
        raise ValidationFailed(field="weight", rule="number", message="Weight must be a valid number", received=weight)
    if parsed <= 0:
        raise ValidationFailed(field="weight", rule="positive", message="Weight must be greater than 0", received=parsed)
    return parsed


def _parse_volunteer_hours(hours: Any) -> int:
    if hours is None or hours == "":
        raise ValidationFailed(
            field="volunteer_hours",
            rule="required",
            message="Volunteers must specify hours volunteered",
        )
    try:
        parsed = int(str(hours).strip())
    except ValueError:
        parsed = -1
    if parsed < 0:
        raise ValidationFailed(
            field="volunteer_hours",
            rule="non_negative_integer",
            message="Volunteer hours must be a whole number of zero or more",
            received=hours,
        )
    return parsed


def _check_duplicates(
    db: Session,
    user_id: int,
    category: WasteCategory,
    weight: float,
    event_id: Optional[int],
) -> None:
    if event_id is not None:
        existing = (
            db.query(RecyclingLog.id)
            .filter(RecyclingLog.user_id == user_id, RecyclingLog.event_id == event_id)
            .first()
        )
        if existing:
            raise DuplicateSubmission(
                kind="event",
                message="You have already submitted a recycling log for this event. "
                        "Each user can only submit one log per event.",
                existing_log_id=existing.id,
            )
        return

    existing = (
        db.query(RecyclingLog.id)
        .filter(
            RecyclingLog.user_id == user_id,
            RecyclingLog.category == category,
            RecyclingLog.weight == weight,
            RecyclingLog.event_id.is_(None),
        )
        .first()
    )
    if existing:
        raise DuplicateSubmission(
            kind="free_standing",
            message=f"You have already submitted this exact recycling log ({category.value}, {weight}kg). "
                    "Each combination of category and weight can only be submitted once.",
            existing_log_id=existing.id,
        )


def _check_event(db: Session, user_id: int, event_id: int) -> None:
    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise EventNotFound("The specified event does not exist", {"event_id": event_id})
    registered = (
        db.query(EventParticipant.id)
        .filter(EventParticipant.event_id == event_id, EventParticipant.user_id == user_id)
        .first()
    )
    if registered is None:
        raise NotRegistered(
            "You must be registered for the event to submit recycling logs for it",
            {"event_id": event_id},
        )


def submit_log(
    db: Session,
    user_id: int,
    category: Optional[str],
    weight: Any,
    description: Optional[str] = None,
    event_id: Optional[int] = None,
    volunteer_hours: Any = None,
    image_content: Optional[bytes] = None,
    image_filename: Optional[str] = None,
) -> RecyclingLogDetail:
    """Validate and store a new pending recycling log.

    The image, if any, is stored first; every failure after that removes it
    again before the error propagates.
    """
    image_url = None
    if image_content is not None:
        image_url = storage_service.save_image(image_content, image_filename or "")

    try:
        if not category or weight is None or weight == "":
            raise ValidationFailed(
                field="category" if not category else "weight",
                rule="required",
                message="Category and weight are required",
                received={"category": category, "weight": weight},
                required=["category", "weight"],
            )
        parsed_category = _parse_category(category)
        parsed_weight = _parse_weight(weight)

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found", {"user_id": user_id})
        if user.role not in SUBMITTER_ROLES:
            raise PermissionDenied(
                "Only students and volunteers can submit recycling logs",
                {"role": user.role.value},
            )

        hours = _parse_volunteer_hours(volunteer_hours) if user.role == UserRole.volunteer else 0

        _check_duplicates(db, user_id, parsed_category, parsed_weight, event_id)
        if event_id is not None:
            _check_event(db, user_id, event_id)

        log = RecyclingLog(
            user_id=user_id,
            category=parsed_category,
            weight=parsed_weight,
            description=description or None,
            image_url=image_url,
            event_id=event_id,
            verified=False,
            eco_points_earned=0,
            volunteer_hours=hours,
        )
        db.add(log)
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Database error while inserting recycling log for user %s", user_id)
            raise StorageFailure("Could not save recycling log") from exc
        db.refresh(log)
    except Exception:
        if image_url:
            storage_service.delete_image(image_url)
        raise

    logger.info(
        "User %s submitted recycling log %s (%s, %skg, event=%s)",
        user_id, log.id, parsed_category.value, parsed_weight, event_id,
    )
    return log_detail(db, log.id)


def withdraw_log(db: Session, log_id: int, actor: User) -> None:
    """Delete a log on behalf of its owner (unverified only) or an admin."""
    log = db.query(RecyclingLog).filter(RecyclingLog.id == log_id).first()
    if not log:
        raise NotFound("Recycling log not found", {"log_id": log_id})

    is_admin = actor.role == UserRole.admin
    if not is_admin and log.user_id != actor.id:
        raise PermissionDenied("Access denied", {"log_id": log_id})
    if log.verified and not is_admin:
        raise PermissionDenied("Cannot delete verified logs", {"log_id": log_id})

    image_url = log.image_url
    db.delete(log)
    db.commit()
    if image_url:
        storage_service.delete_image(image_url)
    logger.info("Recycling log %s deleted by user %s", log_id, actor.id)
