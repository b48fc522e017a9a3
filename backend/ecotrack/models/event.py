"""Event ORM model."""
import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ecotrack.database import Base


class EventType(str, enum.Enum):
    cleanup = "cleanup"
    awareness = "awareness"
    workshop = "workshop"
    other = "other"


class EventStatus(str, enum.Enum):
    pending = "pending"
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(SAEnum(EventType), nullable=False, default=EventType.other)
    location = Column(String(255), nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    max_participants = Column(Integer, nullable=True)
    eco_points_reward = Column(Integer, nullable=False, default=10)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    participants = relationship("EventParticipant", back_populates="event", cascade="all, delete-orphan")
