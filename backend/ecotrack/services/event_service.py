"""Event service: the slice of event management the recycling pipeline needs.

- Organizer-only update/delete (admins may also delete)
- Registration rules: no cancelled/completed events, capacity, no double registration
- Unregistering is refused once attendance has been verified
"""
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ecotrack.exceptions import EventNotFound, NotFound, PermissionDenied, RegistrationRefused
from ecotrack.models.event import Event, EventStatus, EventType
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.event import EventOut, RegisteredEventOut

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (EventStatus.cancelled, EventStatus.completed)


def get_event(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise EventNotFound("Event not found", {"event_id": event_id})
    return event


def _check_authorization(event: Event, actor: User, allow_admin: bool = False) -> None:
    """Only the organizer may modify an event."""
    if event.organizer_id == actor.id:
        return
    if allow_admin and actor.role == UserRole.admin:
        return
    raise PermissionDenied("You can only modify your own events", {"event_id": event.id})


def create_event(db: Session, organizer: User, fields: dict[str, Any]) -> Event:
    event = Event(
        organizer_id=organizer.id,
        event_type=EventType(fields.pop("event_type")),
        status=EventStatus.upcoming,
        **fields,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by organizer %s", event.title, event.id, organizer.id)
    return event


def update_event(db: Session, event_id: int, actor: User, updates: dict[str, Any]) -> Event:
    """Partial update. A new ``eco_points_reward`` applies to every log verified afterwards."""
    event = get_event(db, event_id)
    _check_authorization(event, actor)

    for field, value in updates.items():
        if field == "event_type" and value is not None:
            value = EventType(value)
        elif field == "status" and value is not None:
            value = EventStatus(value)
        setattr(event, field, value)

    db.commit()
    db.refresh(event)
    logger.info("Updated event %s: %s", event_id, sorted(updates))
    return event


def delete_event(db: Session, event_id: int, actor: User) -> None:
    """Delete an event and its registrations. Its recycling logs are kept."""
    event = get_event(db, event_id)
    _check_authorization(event, actor, allow_admin=True)
    db.delete(event)
    db.commit()
    logger.info("Deleted event %s by user %s", event_id, actor.id)


def register(db: Session, event_id: int, user: User) -> EventParticipant:
    event = get_event(db, event_id)
    if event.status in CLOSED_STATUSES:
        raise RegistrationRefused(
            f"Cannot register for {event.status.value} event",
            {"event_id": event_id, "status": event.status.value},
        )

    if event.max_participants:
        count = db.query(EventParticipant).filter(EventParticipant.event_id == event_id).count()
        if count >= event.max_participants:
            raise RegistrationRefused("Event is full", {"event_id": event_id})

    existing = (
        db.query(EventParticipant)
        .filter(EventParticipant.event_id == event_id, EventParticipant.user_id == user.id)
        .first()
    )
    if existing:
        raise RegistrationRefused("Already registered for this event", {"event_id": event_id})

    participant = EventParticipant(event_id=event_id, user_id=user.id, attended=False)
    db.add(participant)
    db.commit()
    db.refresh(participant)
    logger.info("User %s registered for event %s", user.id, event_id)
    return participant


def unregister(db: Session, event_id: int, user: User) -> None:
    get_event(db, event_id)
    participant = (
        db.query(EventParticipant)
        .filter(EventParticipant.event_id == event_id, EventParticipant.user_id == user.id)
        .first()
    )
    if not participant:
        raise NotFound("Not registered for this event", {"event_id": event_id})
    if participant.attended:
        raise RegistrationRefused("Cannot unregister from attended event", {"event_id": event_id})
    db.delete(participant)
    db.commit()
    logger.info("User %s unregistered from event %s", user.id, event_id)


def registered_events(db: Session, user: User) -> list[RegisteredEventOut]:
    """Events the user registered for, minus those already settled by a verified log."""
    settled = select(RecyclingLog.event_id).where(
        RecyclingLog.user_id == user.id,
        RecyclingLog.verified.is_(True),
        RecyclingLog.event_id.isnot(None),
    )
    rows = (
        db.query(Event, EventParticipant, User.name)
        .join(EventParticipant, EventParticipant.event_id == Event.id)
        .join(User, User.id == Event.organizer_id)
        .filter(EventParticipant.user_id == user.id, Event.id.notin_(settled))
        .order_by(Event.event_date.desc(), Event.id.desc())
        .all()
    )
    return [
        RegisteredEventOut(
            **EventOut.model_validate(event).model_dump(),
            organizer_name=organizer_name,
            attended=participant.attended,
            registered_at=participant.registered_at,
        )
        for event, participant, organizer_name in rows
    ]
