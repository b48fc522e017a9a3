"""Auto-approval of pending event-linked recycling logs.

``run_auto_approval_tick`` is one pass over the pending logs and can be called
directly. ``SchedulerHandle`` runs that pass on an interval in a background
APScheduler thread; the application keeps one handle on ``app.state``.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecotrack.config import settings
from ecotrack.database import SessionLocal
from ecotrack.exceptions import AlreadyVerified, EcoTrackError
from ecotrack.models.recycling_log import RecyclingLog
from ecotrack.schemas.system import AutoApprovalRun, TickOutcome
from ecotrack.services import settings_service
from ecotrack.services.verification_service import approve_log

logger = logging.getLogger(__name__)

JOB_ID = "auto_approve_recycling_logs"


def run_auto_approval_tick(db: Session, system_user_id: Optional[int] = None) -> AutoApprovalRun:
    """Approve every pending event-linked log, one at a time.

    A failing log is recorded and the batch moves on; it stays pending and is
    retried on the next tick. Free-standing logs are never touched.
    """
    system_user_id = settings.SYSTEM_USER_ID if system_user_id is None else system_user_id
    logger.info("Auto-approval check started")

    if not settings_service.is_auto_approval_enabled(db):
        logger.info("Auto-approval is disabled - skipping")
        return AutoApprovalRun(processed=False, reason="disabled")

    pending = (
        db.query(RecyclingLog.id, RecyclingLog.user_id)
        .filter(RecyclingLog.verified.is_(False), RecyclingLog.event_id.isnot(None))
        .order_by(RecyclingLog.id)
        .all()
    )
    if not pending:
        logger.info("No pending logs found")
        return AutoApprovalRun(processed=True)

    logger.info("Found %d pending log(s) - processing", len(pending))
    run = AutoApprovalRun(processed=True, total=len(pending))
    for log_id, user_id in pending:
        try:
            result = approve_log(db, log_id, system_user_id)
        except AlreadyVerified:
            db.rollback()
            run.skipped += 1
            run.results.append(TickOutcome(log_id=log_id, user_id=user_id, success=False, reason="already verified"))
            logger.info("  Log %s: already verified, skipped", log_id)
            continue
        except (EcoTrackError, SQLAlchemyError) as exc:
            db.rollback()
            run.failed += 1
            reason = exc.message if isinstance(exc, EcoTrackError) else str(exc)
            run.results.append(TickOutcome(log_id=log_id, user_id=user_id, success=False, reason=reason))
            logger.warning("  Log %s: %s", log_id, reason)
            continue
        except Exception:
            db.rollback()
            run.failed += 1
            run.results.append(TickOutcome(log_id=log_id, user_id=user_id, success=False, reason="unexpected error"))
            logger.exception("  Log %s: unexpected error", log_id)
            continue

        run.approved += 1
        run.results.append(
            TickOutcome(log_id=log_id, user_id=user_id, success=True, points_awarded=result.points_awarded)
        )
        logger.info("  Log %s: %d points -> user %s", log_id, result.points_awarded, user_id)

    logger.info("Auto-approval complete: %d approved, %d failed, %d skipped", run.approved, run.failed, run.skipped)

    if run.approved > 0:
        settings_service.record_system_log(
            db,
            "AUTO_APPROVE_SCHEDULED",
            system_user_id,
            f"Scheduled check: {run.approved} logs approved, {run.failed} failed",
        )
    return run


class SchedulerHandle:
    """Start/stop bookkeeping for the recurring auto-approval job.

    At most one background scheduler exists per handle: ``start`` replaces a
    running one, ``stop`` is a no-op when idle. Stopping lets an in-flight
    tick finish.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        interval_seconds: Optional[int] = None,
        system_user_id: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds or settings.AUTO_APPROVAL_INTERVAL_SECONDS
        self.system_user_id = system_user_id
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()

    def start(self, run_immediately: bool = False) -> None:
        """Schedule the job. The first tick comes one interval later unless ``run_immediately``."""
        with self._lock:
            if self._scheduler is not None:
                logger.warning("Scheduler already running - stopping old one first")
                self._shutdown()
            scheduler = BackgroundScheduler()
            # next_run_time=None would add the job paused
            first_run = {"next_run_time": datetime.now(timezone.utc)} if run_immediately else {}
            scheduler.add_job(
                self.run_once,
                "interval",
                seconds=self.interval_seconds,
                id=JOB_ID,
                max_instances=1,
                coalesce=True,
                **first_run,
            )
            scheduler.start()
            self._scheduler = scheduler
        logger.info("Auto-approval scheduler started (every %ds)", self.interval_seconds)

    def stop(self) -> None:
        with self._lock:
            if self._scheduler is None:
                logger.info("No active scheduler to stop")
                return
            self._shutdown()
        logger.info("Auto-approval scheduler stopped")

    def is_running(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and scheduler.running

    def run_once(self) -> AutoApprovalRun:
        """One tick in a fresh session; this is what the interval job calls."""
        db = self.session_factory()
        try:
            return run_auto_approval_tick(db, self.system_user_id)
        finally:
            db.close()

    def _shutdown(self) -> None:
        # wait=False: do not block on a tick in progress
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
