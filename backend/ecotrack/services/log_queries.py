"""Read-side queries for recycling logs: detail views, listings and stats."""
from typing import Optional

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session, aliased

from ecotrack.exceptions import NotFound
from ecotrack.models.event import Event
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog, WasteCategory
from ecotrack.models.user import User
from ecotrack.schemas.recycling_log import (
    CategoryStats,
    LogStats,
    RecyclingLogDetail,
    RecyclingLogOut,
    RecyclingStats,
)


def _detail_query(db: Session):
    verifier = aliased(User)
    return (
        db.query(RecyclingLog, User, Event, verifier, EventParticipant)
        .join(User, RecyclingLog.user_id == User.id)
        .outerjoin(Event, RecyclingLog.event_id == Event.id)
        .outerjoin(verifier, RecyclingLog.verified_by == verifier.id)
        .outerjoin(
            EventParticipant,
            and_(
                EventParticipant.event_id == RecyclingLog.event_id,
                EventParticipant.user_id == RecyclingLog.user_id,
            ),
        )
    )


def _to_detail(row) -> RecyclingLogDetail:
    log, user, event, verifier, participant = row
    data = RecyclingLogOut.model_validate(log).model_dump()
    data.update(
        user_name=user.name,
        user_email=user.email,
        user_role=user.role.value,
        user_total_eco_points=user.eco_points,
        event_title=event.title if event else None,
        event_date=event.event_date if event else None,
        event_eco_points=event.eco_points_reward if event else None,
        verified_by_name=verifier.name if verifier else None,
        participant_attended=participant.attended if participant else None,
    )
    return RecyclingLogDetail(**data)


def log_detail(db: Session, log_id: int) -> RecyclingLogDetail:
    row = _detail_query(db).filter(RecyclingLog.id == log_id).first()
    if row is None:
        raise NotFound("Recycling log not found", {"log_id": log_id})
    return _to_detail(row)


def list_logs(
    db: Session,
    status: Optional[str] = None,
    category: Optional[str] = None,
    user_id: Optional[int] = None,
) -> list[RecyclingLogDetail]:
    """Admin listing. ``status`` is ``pending`` or ``approved``."""
    query = _detail_query(db)
    if status == "pending":
        query = query.filter(RecyclingLog.verified.is_(False))
    elif status == "approved":
        query = query.filter(RecyclingLog.verified.is_(True))
    if category:
        query = query.filter(RecyclingLog.category == WasteCategory(category))
    if user_id is not None:
        query = query.filter(RecyclingLog.user_id == user_id)
    rows = query.order_by(RecyclingLog.created_at.desc(), RecyclingLog.id.desc()).all()
    return [_to_detail(row) for row in rows]


def list_pending(db: Session) -> list[RecyclingLogDetail]:
    return list_logs(db, status="pending")


def user_logs(db: Session, user_id: int) -> tuple[list[RecyclingLogDetail], LogStats]:
    logs = list_logs(db, user_id=user_id)
    totals = (
        db.query(
            func.count(RecyclingLog.id),
            func.coalesce(func.sum(RecyclingLog.weight), 0),
            func.coalesce(func.sum(RecyclingLog.eco_points_earned), 0),
            func.coalesce(func.sum(RecyclingLog.volunteer_hours), 0),
            func.coalesce(func.sum(case((RecyclingLog.verified.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(case((RecyclingLog.verified.is_(False), 1), else_=0)), 0),
        )
        .filter(RecyclingLog.user_id == user_id)
        .one()
    )
    stats = LogStats(
        total_logs=totals[0],
        total_weight=totals[1],
        total_points=totals[2],
        total_hours=totals[3],
        approved_count=totals[4],
        pending_count=totals[5],
    )
    return logs, stats


def verified_stats(db: Session, user_id: int) -> RecyclingStats:
    """Totals over a user's verified logs, with a per-category breakdown."""
    base = db.query(RecyclingLog).filter(RecyclingLog.user_id == user_id, RecyclingLog.verified.is_(True))
    count, weight, points = base.with_entities(
        func.count(RecyclingLog.id),
        func.coalesce(func.sum(RecyclingLog.weight), 0),
        func.coalesce(func.sum(RecyclingLog.eco_points_earned), 0),
    ).one()

    total_weight = func.sum(RecyclingLog.weight)
    rows = (
        base.with_entities(
            RecyclingLog.category,
            func.count(RecyclingLog.id),
            total_weight,
            func.coalesce(func.sum(RecyclingLog.eco_points_earned), 0),
        )
        .group_by(RecyclingLog.category)
        .order_by(total_weight.desc())
        .all()
    )
    return RecyclingStats(
        total_logs=count,
        total_weight=weight,
        total_points=points,
        approved_count=count,
        by_category=[
            CategoryStats(category=cat.value, count=n, total_weight=w, total_points=p)
            for cat, n, w, p in rows
        ],
    )
