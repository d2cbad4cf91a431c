"""
Application settings and configuration management.
"""
from typing import List, Union
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    # Base
    PROJECT_NAME: str = "Listpilot"
    PROJECT_DESCRIPTION: str = "Multi-account console backend for the Brevo email API"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Account store
    DATABASE_URL: str = "sqlite+aiosqlite:///./listpilot.db"

    # Brevo API
    BREVO_BASE_URL: str = "https://api.brevo.com/v3"
    BREVO_TIMEOUT: float = 30.0
    BREVO_LISTS_LIMIT: int = 50

    # Import jobs
    JOB_PAUSE_POLL_INTERVAL: float = 0.5  # seconds between pause re-checks
    JOB_TICK_INTERVAL: float = 1.0  # elapsed-time ticker period
    JOB_DISCARD_GRACE_SECONDS: float = 0.05  # yield after discarding an account's previous job
    JOB_MAX_DELAY_SECONDS: float = 3600.0
    JOB_TICKER_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        """Pydantic config."""
        case_sensitive = True
        env_file = ".env"


# Create singleton settings instance
settings = Settings()
