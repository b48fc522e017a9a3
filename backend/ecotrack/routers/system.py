"""System administration routes: settings and auto-approval control."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.dependencies import get_scheduler, require_roles
from ecotrack.models.system import AUTO_APPROVE_LOGS
from ecotrack.models.user import User
from ecotrack.schemas.system import (
    AutoApprovalRun,
    SchedulerStatus,
    SettingOut,
    SettingUpdate,
    SettingUpdateResponse,
    SystemLogOut,
    SystemLogPage,
)
from ecotrack.services import settings_service
from ecotrack.services.auto_approval import SchedulerHandle, run_auto_approval_tick

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/settings", response_model=dict[str, SettingOut])
def get_settings(_admin: User = Depends(require_roles("admin")), db: Session = Depends(get_db)):
    """All system settings keyed by name."""
    return {
        s.setting_key: SettingOut(value=s.setting_value, description=s.description, updated_at=s.updated_at)
        for s in settings_service.list_settings(db)
    }


@router.put("/settings/{key}", response_model=SettingUpdateResponse)
def update_setting(
    key: str,
    payload: SettingUpdate,
    admin: User = Depends(require_roles("admin")),
    scheduler: SchedulerHandle = Depends(get_scheduler),
    db: Session = Depends(get_db),
):
    """Update a setting. Toggling auto-approval also starts or stops the scheduler.

    Enabling it runs one pass immediately over the logs already pending.
    """
    value = str(payload.value).lower() if isinstance(payload.value, bool) else str(payload.value)
    settings_service.update_setting(db, key, value, admin.id)

    response = SettingUpdateResponse(message="Setting updated successfully", key=key, value=value)
    if key == AUTO_APPROVE_LOGS:
        if value == "true":
            logger.info("Auto-approval enabled - starting scheduler")
            scheduler.start()
            response.auto_approval = run_auto_approval_tick(db, scheduler.system_user_id)
            response.scheduler_status = "started"
        else:
            logger.info("Auto-approval disabled - stopping scheduler")
            scheduler.stop()
            response.scheduler_status = "stopped"
    return response


@router.get("/scheduler", response_model=SchedulerStatus)
def scheduler_status(
    _admin: User = Depends(require_roles("admin")),
    scheduler: SchedulerHandle = Depends(get_scheduler),
    db: Session = Depends(get_db),
):
    return SchedulerStatus(
        running=scheduler.is_running(),
        enabled=settings_service.is_auto_approval_enabled(db),
        interval_seconds=scheduler.interval_seconds,
    )


@router.post("/auto-approve/run", response_model=AutoApprovalRun)
def run_auto_approval(
    _admin: User = Depends(require_roles("admin")),
    scheduler: SchedulerHandle = Depends(get_scheduler),
    db: Session = Depends(get_db),
):
    """Run one auto-approval pass now. Still a no-op while the toggle is off."""
    return run_auto_approval_tick(db, scheduler.system_user_id)


@router.get("/logs", response_model=SystemLogPage)
def system_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    logs, total = settings_service.list_system_logs(db, limit, offset)
    return SystemLogPage(
        logs=[SystemLogOut.model_validate(entry) for entry in logs],
        total=total,
        limit=limit,
        offset=offset,
    )
