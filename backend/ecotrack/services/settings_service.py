"""System settings and the admin audit log."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ecotrack.exceptions import NotFound
from ecotrack.models.system import AUTO_APPROVE_LOGS, SystemLog, SystemSetting

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    AUTO_APPROVE_LOGS: ("false", "Automatically approve pending event-linked recycling logs"),
}


def seed_defaults(db: Session) -> None:
    """Insert any missing default settings."""
    existing = {key for (key,) in db.query(SystemSetting.setting_key).all()}
    for key, (value, description) in DEFAULT_SETTINGS.items():
        if key not in existing:
            db.add(SystemSetting(setting_key=key, setting_value=value, description=description))
    db.commit()


def get_setting(db: Session, key: str) -> Optional[str]:
    # Column query: always read from the database, never the identity map
    return db.query(SystemSetting.setting_value).filter(SystemSetting.setting_key == key).scalar()


def is_auto_approval_enabled(db: Session) -> bool:
    return get_setting(db, AUTO_APPROVE_LOGS) == "true"


def list_settings(db: Session) -> list[SystemSetting]:
    return db.query(SystemSetting).order_by(SystemSetting.setting_key).all()


def update_setting(db: Session, key: str, value: str, updated_by: int) -> SystemSetting:
    setting = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
    if not setting:
        raise NotFound(f"Unknown setting '{key}'", {"key": key})
    setting.setting_value = value
    setting.updated_by = updated_by
    record_system_log(db, "UPDATE_SETTING", updated_by, f"Changed {key} to {value}", commit=False)
    db.commit()
    db.refresh(setting)
    logger.info("Setting %s changed to %s by user %s", key, value, updated_by)
    return setting


def record_system_log(
    db: Session,
    action: str,
    performed_by: int,
    details: Optional[str] = None,
    commit: bool = True,
) -> SystemLog:
    entry = SystemLog(action=action, performed_by=performed_by, details=details)
    db.add(entry)
    if commit:
        db.commit()
    return entry


def list_system_logs(db: Session, limit: int = 50, offset: int = 0) -> tuple[list[SystemLog], int]:
    query = db.query(SystemLog)
    total = query.count()
    logs = query.order_by(SystemLog.created_at.desc(), SystemLog.id.desc()).limit(limit).offset(offset).all()
    return logs, total
