from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Settings

    Values are read from the environment or a .env file:
    - APP_NAME, APP_VERSION, DEBUG
    - DATABASE_URL
    - UTC_OFFSET_HOURS (fixed offset used for every calendar-day decision)
    - MAX_PAST_DAYS, REJECT_LATE_NIGHT, LATE_NIGHT_START_HOUR, LATE_NIGHT_END_HOUR, NIGHT_SHIFT_EXEMPT
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Timecard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite:///./timecard.db"

    # Calendar day
    UTC_OFFSET_HOURS: int = 9

    # Reasonableness policy for new/edited events
    MAX_PAST_DAYS: int = 7
    REJECT_LATE_NIGHT: bool = False
    LATE_NIGHT_START_HOUR: int = 2
    LATE_NIGHT_END_HOUR: int = 5
    NIGHT_SHIFT_EXEMPT: bool = True

    # Logging
    LOGGING_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/timecard.log"

    CORS_ORIGINS: List[str] = ["*"]


settings = Settings()
