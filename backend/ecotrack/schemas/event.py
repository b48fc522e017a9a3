"""Pydantic schemas for Events and participation."""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Literal["cleanup", "awareness", "workshop", "other"]
    location: Optional[str] = None
    event_date: datetime
    max_participants: Optional[int] = Field(default=None, gt=0)
    eco_points_reward: int = Field(default=10, ge=0)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[Literal["cleanup", "awareness", "workshop", "other"]] = None
    location: Optional[str] = None
    event_date: Optional[datetime] = None
    max_participants: Optional[int] = Field(default=None, gt=0)
    eco_points_reward: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal["upcoming", "ongoing", "completed", "cancelled"]] = None


class EventOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    event_type: str
    location: Optional[str] = None
    event_date: datetime
    organizer_id: int
    max_participants: Optional[int] = None
    eco_points_reward: int
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ParticipantOut(BaseModel):
    event_id: int
    user_id: int
    attended: bool
    registered_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegisteredEventOut(EventOut):
    """An event the current user registered for, with their attendance."""

    organizer_name: Optional[str] = None
    attended: bool
    registered_at: Optional[datetime] = None
