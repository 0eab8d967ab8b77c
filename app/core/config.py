from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from app.schemas.calendar import BusinessCalendar


class Settings(BaseSettings):
    """Application settings."""

    # Basic settings
    PROJECT_NAME: str = "Autoservice Scheduling"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./autoservice.db"

    # CORS
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v

    # Booking
    BOOKING_MAX_ATTEMPTS: int = Field(3, ge=1)

    # Business calendar, e.g. CALENDAR__max_concurrent_appointments=4
    CALENDAR: BusinessCalendar = Field(default_factory=BusinessCalendar)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
