"""Eco-points routes: balances, ranking, history and manual awards."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.dependencies import get_current_user, require_roles
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.user import (
    LeaderboardEntry,
    PointsAward,
    PointsAwardOut,
    PointsHistory,
    PointsSummary,
    RankView,
)
from ecotrack.services import points_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/award", response_model=PointsAwardOut)
def award_points(
    payload: PointsAward,
    actor: User = Depends(require_roles("organizer", "admin")),
    db: Session = Depends(get_db),
):
    """Award eco-points outside the verification pipeline."""
    user = db.query(User).filter(User.id == payload.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    db.query(User).filter(User.id == payload.user_id).update(
        {User.eco_points: User.eco_points + payload.points},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(user)
    logger.info("User %s awarded %d points to user %s", actor.id, payload.points, user.id)
    return PointsAwardOut(
        message="Eco-points awarded successfully",
        user=LeaderboardEntry.model_validate(user),
        points_awarded=payload.points,
        reason=payload.reason or "Manual award",
    )


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    """Top students and volunteers by eco-points."""
    return (
        db.query(User)
        .filter(User.role.in_([UserRole.student, UserRole.volunteer]))
        .order_by(User.eco_points.desc(), User.id)
        .limit(limit)
        .all()
    )


@router.get("/my-points", response_model=PointsSummary)
def my_points(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The current user's balance, rank and recent earnings."""
    return points_service.summary(db, user.id)


@router.get("/my-rank", response_model=RankView)
def my_rank(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The current user's rank and nearby competitors."""
    return points_service.rank_view(db, user.id)


@router.get("/history", response_model=PointsHistory)
def my_history(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Points earned from the current user's verified logs."""
    return points_service.history(db, user.id)


@router.get("/history/{user_id}", response_model=PointsHistory)
def user_history(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Another user's points history (own history, organizers and admins)."""
    if user_id != user.id and user.role not in (UserRole.organizer, UserRole.admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return points_service.history(db, user_id)
