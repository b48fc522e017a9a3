"""SQLAlchemy engine, session factory and the FastAPI session dependency."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from ecotrack.config import settings

engine_kwargs: dict = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # The auto-approval job runs on its own thread
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(settings.DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
