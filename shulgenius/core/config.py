# shulgenius/core/config.py
from typing import List
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "ShulGenius"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS (comma-separated)
    BACKEND_CORS_ORIGINS: str = ""

    # Cardknox / Sola gateway
    CARDKNOX_GATEWAY_URL: str = "https://x1.cardknox.com/gatewayjson"
    CARDKNOX_RECURRING_API_URL: str = "https://api.cardknox.com/v2"
    CARDKNOX_RECURRING_API_VERSION: str = "2.1"
    GATEWAY_API_VERSION: str = "5.0.0"
    GATEWAY_SOFTWARE_NAME: str = "ShulGenius"
    GATEWAY_SOFTWARE_VERSION: str = "1.0.0"
    GATEWAY_TIMEOUT_SECONDS: float = 30.0

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
