"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ecotrack.config import settings
from ecotrack.database import Base, SessionLocal, engine
from ecotrack.exceptions import EcoTrackError
from ecotrack.services import settings_service
from ecotrack.services.auto_approval import SchedulerHandle

# Import routers
from ecotrack.routers import users, events, recycling_logs, notifications, ecopoints, system

# Import all models so Base.metadata knows about them
from ecotrack.models.user import User                        # noqa: F401
from ecotrack.models.event import Event                      # noqa: F401
from ecotrack.models.participant import EventParticipant     # noqa: F401
from ecotrack.models.recycling_log import RecyclingLog       # noqa: F401
from ecotrack.models.notification import Notification        # noqa: F401
from ecotrack.models.system import SystemLog, SystemSetting  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables (SQLite dev mode), seed settings, own the auto-approval scheduler."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        settings_service.seed_defaults(db)
        resume = settings.AUTO_APPROVAL_START_ON_BOOT and settings_service.is_auto_approval_enabled(db)
    finally:
        db.close()

    app.state.scheduler = SchedulerHandle(session_factory=SessionLocal)
    if resume:
        app.state.scheduler.start(run_immediately=True)
    try:
        yield
    finally:
        app.state.scheduler.stop()


app = FastAPI(
    title="EcoTrack",
    description="Campus recycling logs and eco-points",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

upload_dir = Path(settings.UPLOAD_DIR)
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")


@app.exception_handler(EcoTrackError)
async def ecotrack_error_handler(request: Request, exc: EcoTrackError) -> JSONResponse:
    """Render service-layer errors as structured JSON."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(recycling_logs.router, prefix="/api/recycling", tags=["Recycling"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(ecopoints.router, prefix="/api/ecopoints", tags=["EcoPoints"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
