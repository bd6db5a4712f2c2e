"""Configuration settings for the reservation engine."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Reservation Engine")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./reservation.db")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/pichangapp/v1/reservation")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CREATE_TABLES_ON_STARTUP: bool = _as_bool(
        os.getenv("CREATE_TABLES_ON_STARTUP", "true")
    )
    NOTIFICATION_SERVICE_URL: str = os.getenv("NOTIFICATION_SERVICE_URL", "")
    NOTIFICATION_SERVICE_TIMEOUT: float = float(
        os.getenv("NOTIFICATION_SERVICE_TIMEOUT", "10")
    )

    # Pricing
    TAX_RATE: str = os.getenv("TAX_RATE", "0.16")
    SERVICE_FEE_RATE: str = os.getenv("SERVICE_FEE_RATE", "0.03")
    SERVICE_FEE_ENABLED: bool = _as_bool(os.getenv("SERVICE_FEE_ENABLED", "false"))

    # Scheduling
    SLOT_MINUTES: int = int(os.getenv("SLOT_MINUTES", "30"))
    CHECK_IN_EARLY_MINUTES: int = int(os.getenv("CHECK_IN_EARLY_MINUTES", "30"))
    CHECK_IN_LATE_MINUTES: int = int(os.getenv("CHECK_IN_LATE_MINUTES", "15"))
    MAX_CALENDAR_DAYS: int = int(os.getenv("MAX_CALENDAR_DAYS", "31"))

    # Cancellation
    REFUND_POLICY: str = os.getenv("REFUND_POLICY", "standard")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
