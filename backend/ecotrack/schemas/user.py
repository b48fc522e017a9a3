"""Pydantic schemas for Users and eco-points."""
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["student", "volunteer", "organizer", "admin"]


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    role: Role = "student"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    role: Optional[Role] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    eco_points: int
    created_at: datetime

    model_config = {"from_attributes": True}


class PointsAward(BaseModel):
    user_id: int
    points: int = Field(gt=0)
    reason: Optional[str] = None


class PointsAwardOut(BaseModel):
    message: str
    user: LeaderboardEntry
    points_awarded: int
    reason: str


class LeaderboardEntry(BaseModel):
    id: int
    name: str
    eco_points: int

    model_config = {"from_attributes": True}


# Rebuild PointsAwardOut now that LeaderboardEntry is defined
PointsAwardOut.model_rebuild()


class PointsSummary(BaseModel):
    eco_points: int
    rank: int
    events_attended: int
    events_registered: int
    monthly_points: int
    weekly_points: int


class RankedUser(LeaderboardEntry):
    rank: int


class RankView(BaseModel):
    user: RankedUser
    users_above: list[LeaderboardEntry]
    users_below: list[LeaderboardEntry]
    total_users: int


class PointsHistoryEntry(BaseModel):
    log_id: int
    category: str
    weight: float
    event_id: Optional[int] = None
    event_title: Optional[str] = None
    eco_points_earned: int
    verified_at: Optional[datetime] = None


class PointsHistory(BaseModel):
    history: list[PointsHistoryEntry]
    total_points: int
    logs_count: int
