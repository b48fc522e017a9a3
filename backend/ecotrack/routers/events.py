"""Event API routes and participant registration."""
import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.dependencies import get_current_user, require_roles
from ecotrack.models.event import Event, EventStatus
from ecotrack.models.user import User
from ecotrack.schemas.event import EventCreate, EventOut, EventUpdate, ParticipantOut, RegisteredEventOut
from ecotrack.services import event_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    organizer: User = Depends(require_roles("organizer", "admin")),
    db: Session = Depends(get_db),
):
    """Create an event organized by the current user."""
    return event_service.create_event(db, organizer, payload.model_dump())


@router.get("/", response_model=list[EventOut])
def list_events(
    status_filter: Optional[Literal["pending", "upcoming", "ongoing", "completed", "cancelled"]] = Query(
        None, alias="status"
    ),
    db: Session = Depends(get_db),
):
    """List events, optionally by status."""
    query = db.query(Event)
    if status_filter:
        query = query.filter(Event.status == EventStatus(status_filter))
    return query.order_by(Event.event_date).all()


@router.get("/user/registered", response_model=list[RegisteredEventOut])
def registered_events(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Events the current user is registered for that still await a verified log."""
    return event_service.registered_events(db, user)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: int, db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    return event_service.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: int,
    payload: EventUpdate,
    organizer: User = Depends(require_roles("organizer", "admin")),
    db: Session = Depends(get_db),
):
    """Update an event (organizer only)."""
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    return event_service.update_event(db, event_id, organizer, updates)


@router.delete("/{event_id}")
def delete_event(
    event_id: int,
    user: User = Depends(require_roles("organizer", "admin")),
    db: Session = Depends(get_db),
):
    """Delete an event (organizer or admin)."""
    event_service.delete_event(db, event_id, user)
    return {"message": "Event deleted successfully"}


@router.post("/{event_id}/register", response_model=ParticipantOut, status_code=status.HTTP_201_CREATED)
def register(event_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Register the current user as a participant."""
    return event_service.register(db, event_id, user)


@router.delete("/{event_id}/register")
def unregister(event_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Withdraw the current user's registration."""
    event_service.unregister(db, event_id, user)
    return {"message": "Successfully unregistered from event"}
