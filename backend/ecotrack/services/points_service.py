"""Eco-points read models: a user's summary, rank neighbourhood and earning history.

Rank is computed among students and volunteers only; ties share a rank.
"""
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from ecotrack.exceptions import NotFound
from ecotrack.models.event import Event
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.user import (
    LeaderboardEntry,
    PointsHistory,
    PointsHistoryEntry,
    PointsSummary,
    RankedUser,
    RankView,
)

RANKED_ROLES = (UserRole.student, UserRole.volunteer)
NEIGHBOURS = 3


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found", {"user_id": user_id})
    return user


def _ranked(db: Session):
    return db.query(User).filter(User.role.in_(RANKED_ROLES))


def rank_of(db: Session, eco_points: int) -> int:
    return _ranked(db).filter(User.eco_points > eco_points).count() + 1


def _points_since(db: Session, user_id: int, since: datetime) -> int:
    return (
        db.query(func.coalesce(func.sum(RecyclingLog.eco_points_earned), 0))
        .filter(
            RecyclingLog.user_id == user_id,
            RecyclingLog.verified.is_(True),
            RecyclingLog.verified_at >= since,
        )
        .scalar()
    )


def summary(db: Session, user_id: int) -> PointsSummary:
    """Current balance, rank, participation counts and recent earnings.

    Monthly and weekly totals count points by when the log was verified,
    in UTC; weeks start on Monday.
    """
    user = _get_user(db, user_id)
    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    week_start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)

    registrations = db.query(EventParticipant).filter(EventParticipant.user_id == user_id)
    return PointsSummary(
        eco_points=user.eco_points or 0,
        rank=rank_of(db, user.eco_points),
        events_attended=registrations.filter(EventParticipant.attended.is_(True)).count(),
        events_registered=registrations.count(),
        monthly_points=_points_since(db, user_id, month_start),
        weekly_points=_points_since(db, user_id, week_start),
    )


def rank_view(db: Session, user_id: int) -> RankView:
    """The user's rank with up to three competitors on either side."""
    user = _get_user(db, user_id)
    above = (
        _ranked(db)
        .filter(User.eco_points > user.eco_points)
        .order_by(User.eco_points.asc(), User.name.asc())
        .limit(NEIGHBOURS)
        .all()
    )
    below = (
        _ranked(db)
        .filter(User.eco_points < user.eco_points)
        .order_by(User.eco_points.desc(), User.name.asc())
        .limit(NEIGHBOURS)
        .all()
    )
    return RankView(
        user=RankedUser(id=user.id, name=user.name, eco_points=user.eco_points, rank=rank_of(db, user.eco_points)),
        # highest first
        users_above=[LeaderboardEntry.model_validate(u) for u in reversed(above)],
        users_below=[LeaderboardEntry.model_validate(u) for u in below],
        total_users=_ranked(db).count(),
    )


def history(db: Session, user_id: int) -> PointsHistory:
    """Verified logs with the points each one earned, newest first."""
    _get_user(db, user_id)
    rows = (
        db.query(RecyclingLog, Event.title)
        .outerjoin(Event, RecyclingLog.event_id == Event.id)
        .filter(RecyclingLog.user_id == user_id, RecyclingLog.verified.is_(True))
        .order_by(RecyclingLog.verified_at.desc(), RecyclingLog.id.desc())
        .all()
    )
    entries = [
        PointsHistoryEntry(
            log_id=log.id,
            category=log.category.value,
            weight=log.weight,
            event_id=log.event_id,
            event_title=title,
            eco_points_earned=log.eco_points_earned,
            verified_at=log.verified_at,
        )
        for log, title in rows
    ]
    return PointsHistory(
        history=entries,
        total_points=sum(e.eco_points_earned for e in entries),
        logs_count=len(entries),
    )
