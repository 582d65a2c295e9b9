"""
Application settings.

Values are read from environment variables and an optional .env file.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the dashboard service."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./marketplace.db"

    # JWT
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    # Comma separated list of allowed origins
    CORS_ORIGINS: str = "*"

    # Entity store
    STORE_LOAD_TIMEOUT: float = 5.0
    NOTIFICATION_LIMIT: int = 100
    REALTIME_ENABLED: bool = True

    # Device-local storage (None keeps it in memory)
    LOCAL_STORAGE_PATH: Optional[str] = "./local_storage.json"

    # Image storage
    IMAGE_BACKEND: str = "local"  # local | supabase
    MEDIA_ROOT: str = "./media"
    MEDIA_URL: str = "http://localhost:8000/media"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    STORAGE_BUCKET: str = "marketplace-images"

    # Seeded on first start when the users table is empty
    ADMIN_NAME: str = "Administrador"
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def app_name(self) -> str:
        return "Marketplace Dashboard API"

    @property
    def app_version(self) -> str:
        return "1.0.0"

    @property
    def debug(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def log_format(self) -> str:
        return "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def cors_allow_credentials(self) -> bool:
        # Browsers reject credentials with a wildcard origin
        return "*" not in self.cors_origins

    @property
    def host(self) -> str:
        return self.HOST

    @property
    def port(self) -> int:
        return self.PORT

    @property
    def reload(self) -> bool:
        return self.debug


settings = Settings()
