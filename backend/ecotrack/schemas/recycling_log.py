"""Pydantic schemas for RecyclingLogs and the verification pipeline."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class RecyclingLogOut(BaseModel):
    id: int
    user_id: int
    category: str
    weight: float
    description: Optional[str] = None
    image_url: Optional[str] = None
    event_id: Optional[int] = None
    verified: bool
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    eco_points_earned: int
    volunteer_hours: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RecyclingLogDetail(RecyclingLogOut):
    """A log joined with the display fields of its user, event and verifier."""

    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    user_total_eco_points: Optional[int] = None
    event_title: Optional[str] = None
    event_date: Optional[datetime] = None
    event_eco_points: Optional[int] = None
    verified_by_name: Optional[str] = None
    participant_attended: Optional[bool] = None


class SubmitLogResponse(BaseModel):
    message: str
    log: RecyclingLogDetail
    submission_id: int
    image_url: Optional[str] = None


class ApprovalResult(BaseModel):
    log: RecyclingLogDetail
    points_awarded: int


class ApproveLogResponse(BaseModel):
    message: str
    log: RecyclingLogDetail
    eco_points_awarded: int
    participant_marked_attended: bool


class RejectLogRequest(BaseModel):
    reason: Optional[str] = None


class DeletedLogSummary(BaseModel):
    id: int
    category: str
    weight: float


class RejectionResult(BaseModel):
    reason: str
    deleted_log: DeletedLogSummary


class RejectLogResponse(RejectionResult):
    message: str


class LogStats(BaseModel):
    total_logs: int = 0
    total_weight: float = 0
    total_points: int = 0
    total_hours: int = 0
    approved_count: int = 0
    pending_count: int = 0


class MyLogsResponse(BaseModel):
    logs: list[RecyclingLogDetail]
    stats: LogStats


class CategoryStats(BaseModel):
    category: str
    count: int
    total_weight: float
    total_points: int


class RecyclingStats(BaseModel):
    total_logs: int
    total_weight: float
    total_points: int
    approved_count: int
    by_category: list[CategoryStats] = []
