"""Application configuration loaded from environment variables."""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Storage
    data_path: str = os.getenv("DATA_PATH", os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
    database_file: str = "wellbeing.db"

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_path, self.database_file)

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8083

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Notifications: HTTP service when a URL is set, otherwise a local log file
    notification_url: Optional[str] = None
    notification_file: str = "wellbeing_notifications.log"
    http_timeout: float = 5.0

    # Background monitoring
    monitor_interval_hours: float = 6.0
    monitor_autostart: bool = False

    @property
    def notification_path(self) -> str:
        return os.path.join(self.data_path, self.notification_file)

    class Config:
        env_prefix = "WELLBEING_"


@lru_cache
def get_settings() -> Settings:
    return Settings()
