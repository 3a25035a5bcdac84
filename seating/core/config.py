
from decimal import Decimal
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Fair-Cut Seating API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Shared secret for admin / payment-webhook routes (X-Admin-Key header)
    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "seating_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Seat selection
    MAX_SEATS_PER_BOOKING: int = 10
    SELECTION_MODE: Literal["fifo", "contiguous"] = "fifo"

    # Default auditorium layout. Row I is skipped
    DEFAULT_ROW_LABELS: List[str] = ["A", "B", "C", "D", "E", "F", "G", "H", "J", "K"]
    DEFAULT_SEATS_PER_ROW: int = 12
    DEFAULT_LOWER_TIER_ROWS: int = 2
    LOWER_TIER_PRICE: Decimal = Decimal("70")
    UPPER_TIER_PRICE: Decimal = Decimal("150")

    # Max wait for the per-showtime commit lock
    COMMIT_LOCK_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
