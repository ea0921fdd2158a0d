"""
Collaborative Sketch Configuration
Environment-based configuration management
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Collaborative sketch session settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COLLAB_SKETCH_",
        case_sensitive=True,
        extra="ignore"
    )

    # Environment
    ENVIRONMENT: str = Field(default="development", description="Environment (development/staging/production)")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_DIR: Optional[str] = Field(default=None, description="Directory for rotating log files; console only when unset")

    # Persistence
    DATA_DIR: str = Field(default=".", description="Directory holding the saved map")
    SNAPSHOT_FILENAME: str = Field(default="mymap.arexperience", description="Saved map file name")

    # Thumbnails
    THUMBNAIL_MAX_SIZE: int = Field(default=320, ge=16, le=4096, description="Longest thumbnail edge in pixels")
    THUMBNAIL_QUALITY: int = Field(default=70, ge=1, le=95, description="Thumbnail JPEG quality")

    # Sketching
    STROKE_DISTANCE: float = Field(default=0.1, gt=0.0, description="Distance in metres in front of the camera strokes are drawn")

    # Sync engine
    RELOCALIZATION_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None, gt=0.0,
        description="Force relocalization to end after this long; disabled when unset"
    )
    EVENT_QUEUE_SIZE: int = Field(default=0, ge=0, description="Engine event queue bound (0 = unbounded)")
    ENABLE_METRICS: bool = Field(default=True, description="Collect in-process metrics")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def snapshot_path(self) -> Path:
        return Path(self.DATA_DIR) / self.SNAPSHOT_FILENAME


# Global settings instance
_settings = None


def get_settings() -> Settings:
    """Get application settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


__all__ = ["Settings", "get_settings"]
