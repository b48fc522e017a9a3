"""Pydantic schemas for system settings, audit logs and auto-approval runs."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class SettingOut(BaseModel):
    value: str
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingUpdate(BaseModel):
    value: Any


class SystemLogOut(BaseModel):
    id: int
    action: str
    performed_by: int
    details: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SystemLogPage(BaseModel):
    logs: list[SystemLogOut]
    total: int
    limit: int
    offset: int


class TickOutcome(BaseModel):
    log_id: int
    user_id: int
    success: bool
    points_awarded: int = 0
    reason: Optional[str] = None


class AutoApprovalRun(BaseModel):
    """Summary of one auto-approval tick."""

    processed: bool
    reason: Optional[str] = None
    total: int = 0
    approved: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[TickOutcome] = []


class SettingUpdateResponse(BaseModel):
    message: str
    key: str
    value: str
    scheduler_status: Optional[str] = None
    auto_approval: Optional[AutoApprovalRun] = None


class SchedulerStatus(BaseModel):
    running: bool
    enabled: bool
    interval_seconds: int
