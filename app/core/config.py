"""
Configuration management for the SRI Document Identity API
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Project info
    PROJECT_NAME: str = "SRI Document Identity API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: str = ""

    def get_cors_origins(self) -> List[str]:
        """Get CORS origins as a list"""
        if not self.BACKEND_CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]

    # Database (PostgreSQL in production, SQLite file for local development)
    DATABASE_URL: str = "sqlite:///./sri_identity.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600

    # SRI document identity
    SRI_DEFAULT_ENVIRONMENT: str = "1"  # 1 = pruebas, 2 = produccion
    SEQUENCE_LOCK_TIMEOUT_MS: int = 5000  # PostgreSQL lock_timeout for counter rows
    ACCESS_KEY_MAX_ATTEMPTS: int = 3  # numeric code regenerations on clave collision

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    model_config = ConfigDict(
        env_file=[".env.local", ".env"],  # later files take precedence
        case_sensitive=True,
        extra="ignore"
    )


settings = Settings()
