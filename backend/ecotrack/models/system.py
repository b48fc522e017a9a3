"""SystemSetting and SystemLog ORM models."""
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ecotrack.database import Base

AUTO_APPROVE_LOGS = "auto_approve_logs"


class SystemSetting(Base):
    __tablename__ = "system_settings"

    setting_key = Column(String(100), primary_key=True)
    setting_value = Column(String(500), nullable=False)
    description = Column(String(500), nullable=True)
    updated_by = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SystemLog(Base):
    """Audit trail of admin and scheduler actions."""

    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(100), nullable=False)
    performed_by = Column(Integer, nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
