"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./eco_tracker.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Image uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_EXTENSIONS: str = "jpg,jpeg,png,gif,webp"

    # Auto-approval
    SYSTEM_USER_ID: int = 2
    AUTO_APPROVAL_INTERVAL_SECONDS: int = 120
    AUTO_APPROVAL_START_ON_BOOT: bool = False

    @property
    def allowed_image_extensions(self) -> list[str]:
        return [ext.strip().lower() for ext in self.ALLOWED_IMAGE_EXTENSIONS.split(",") if ext.strip()]

    class Config:
        env_file = ".env"


settings = Settings()
