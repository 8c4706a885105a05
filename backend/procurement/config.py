"""Procurement Service Configuration

Configuration settings for the procurement service.
"""

from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Procurement service settings"""

    # Service Configuration
    APP_NAME: str = "Procurement Service"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8002

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./procurement.db"

    # CORS Configuration
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # External services (an empty key disables the integration)
    AUDIT_API_URL: str = "http://localhost:8000"
    AUDIT_API_KEY: str = ""
    INVENTORY_API_URL: str = "http://localhost:8000"
    INVENTORY_API_KEY: str = ""
    FINANCE_API_URL: str = "http://localhost:8000"
    FINANCE_API_KEY: str = ""

    # Best-effort call policy
    INTEGRATION_TIMEOUT_SECONDS: float = 3.0
    INTEGRATION_MAX_ATTEMPTS: int = 2
    INTEGRATION_RETRY_BACKOFF_SECONDS: float = 0.25

    # Business defaults
    DEFAULT_CURRENCY: str = "MXN"
    ENFORCE_PO_TRANSITIONS: bool = True

    # Rate limiting (in-memory, single instance)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_READ_MAX: int = 100
    RATE_LIMIT_MUTATION_MAX: int = 20
    # Only enable behind a proxy that sets X-Forwarded-For itself
    RATE_LIMIT_TRUST_FORWARDED_FOR: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_data_dir() -> Path:
    """Get the data directory path, creating it if necessary"""
    data_dir = Path(__file__).parent / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
