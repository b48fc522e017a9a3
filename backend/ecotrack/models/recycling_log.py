"""RecyclingLog ORM model.

A log is pending while ``verified`` is false. Approval makes it terminal;
rejection deletes the row.
"""
import enum
from sqlalchemy import Column, Integer, Float, String, Text, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from ecotrack.database import Base


class WasteCategory(str, enum.Enum):
    plastic = "plastic"
    paper = "paper"
    metal = "metal"
    glass = "glass"
    electronics = "electronics"
    organic = "organic"
    other = "other"


class RecyclingLog(Base):
    __tablename__ = "recycling_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(SAEnum(WasteCategory), nullable=False)
    weight = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    # Loose reference: deleting an event keeps its logs so approval reports EventNotFound
    event_id = Column(Integer, nullable=True, index=True)
    verified = Column(Boolean, nullable=False, default=False, index=True)
    verified_by = Column(Integer, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    eco_points_earned = Column(Integer, nullable=False, default=0)
    volunteer_hours = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
