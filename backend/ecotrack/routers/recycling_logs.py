"""Recycling log API routes."""
import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.dependencies import get_current_user, require_roles
from ecotrack.models.user import User
from ecotrack.schemas.recycling_log import (
    ApproveLogResponse,
    MyLogsResponse,
    RecyclingLogDetail,
    RecyclingStats,
    RejectLogRequest,
    RejectLogResponse,
    SubmitLogResponse,
)
from ecotrack.services import log_queries, submission_service, verification_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/submit", response_model=SubmitLogResponse, status_code=status.HTTP_201_CREATED)
def submit_log(
    category: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    event_id: Optional[int] = Form(None),
    volunteer_hours: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(require_roles("student", "volunteer")),
    db: Session = Depends(get_db),
):
    """Submit a recycling log (multipart form, optional image). It starts pending."""
    image_content = image_filename = None
    if image is not None and image.filename:
        image_content = image.file.read()
        image_filename = image.filename

    log = submission_service.submit_log(
        db=db,
        user_id=user.id,
        category=category,
        weight=weight,
        description=description,
        event_id=event_id,
        volunteer_hours=volunteer_hours,
        image_content=image_content,
        image_filename=image_filename,
    )
    return SubmitLogResponse(
        message="Recycling log submitted successfully. Waiting for admin approval.",
        log=log,
        submission_id=log.id,
        image_url=log.image_url,
    )


@router.get("/my-logs", response_model=MyLogsResponse)
def my_logs(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The current user's logs, newest first, with totals."""
    logs, stats = log_queries.user_logs(db, user.id)
    return MyLogsResponse(logs=logs, stats=stats)


@router.get("/stats", response_model=RecyclingStats)
def my_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Totals over the current user's verified logs, by category."""
    return log_queries.verified_stats(db, user.id)


@router.get("/pending", response_model=list[RecyclingLogDetail])
def pending_logs(
    _admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    """Logs waiting for verification (admin only)."""
    return log_queries.list_pending(db)


@router.get("/", response_model=list[RecyclingLogDetail])
def list_logs(
    status_filter: Optional[Literal["pending", "approved"]] = Query(None, alias="status"),
    category: Optional[Literal["plastic", "paper", "metal", "glass", "electronics", "organic", "other"]] = Query(None),
    user_id: Optional[int] = Query(None),
    _admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    """List all logs with optional filters (admin only)."""
    return log_queries.list_logs(db, status=status_filter, category=category, user_id=user_id)


@router.patch("/{log_id}/approve", response_model=ApproveLogResponse)
def approve_log(
    log_id: int,
    admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    """Verify a log and award the event's current eco-points reward."""
    result = verification_service.approve_log(db, log_id, admin.id)
    return ApproveLogResponse(
        message="Recycling log approved successfully",
        log=result.log,
        eco_points_awarded=result.points_awarded,
        participant_marked_attended=bool(result.log.participant_attended),
    )


@router.patch("/{log_id}/reject", response_model=RejectLogResponse)
def reject_log(
    log_id: int,
    payload: Optional[RejectLogRequest] = None,
    admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    """Reject a pending log. The log and its image are deleted."""
    reason = payload.reason if payload else None
    result = verification_service.reject_log(db, log_id, reason, admin.id)
    return RejectLogResponse(message="Recycling log rejected and deleted", **result.model_dump())


@router.delete("/{log_id}")
def delete_log(
    log_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an own unverified log (admins may delete any log)."""
    submission_service.withdraw_log(db, log_id, user)
    return {"message": "Recycling log deleted successfully"}
