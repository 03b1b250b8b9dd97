"""
Central configuration. All thresholds, API keys and settings in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    # --- Auth ---
    jwt_secret: str = Field(default="", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # --- Dialogue engine ---
    confidence_threshold: float = Field(default=0.6, alias="CHATBOT_CONFIDENCE_THRESHOLD")
    max_input_length: int = Field(default=1000, alias="CHATBOT_MAX_INPUT_LENGTH")
    max_log_message_length: int = Field(default=100, alias="CHATBOT_MAX_LOG_MESSAGE_LENGTH")
    action_timeout_seconds: float = Field(default=15.0, alias="CHATBOT_ACTION_TIMEOUT_SECONDS")
    default_meeting_duration: int = Field(default=60, alias="CHATBOT_DEFAULT_MEETING_DURATION")

    # --- Sessions ---
    session_timeout_minutes: int = Field(default=30, alias="CHATBOT_SESSION_TIMEOUT_MINUTES")
    session_retention_minutes: int = Field(default=60, alias="CHATBOT_SESSION_RETENTION_MINUTES")
    sweep_interval_seconds: int = Field(default=300, alias="CHATBOT_SWEEP_INTERVAL_SECONDS")

    # --- Intent classifier ---
    short_message_words: int = Field(default=5, alias="CHATBOT_SHORT_MESSAGE_WORDS")
    medium_message_words: int = Field(default=10, alias="CHATBOT_MEDIUM_MESSAGE_WORDS")
    short_message_confidence: float = Field(default=0.95, alias="CHATBOT_SHORT_MESSAGE_CONFIDENCE")
    medium_message_confidence: float = Field(default=0.85, alias="CHATBOT_MEDIUM_MESSAGE_CONFIDENCE")
    long_message_confidence: float = Field(default=0.75, alias="CHATBOT_LONG_MESSAGE_CONFIDENCE")
    low_confidence_warning_threshold: float = Field(
        default=0.6, alias="CHATBOT_LOW_CONFIDENCE_WARNING_THRESHOLD",
    )

    # --- Entity extractor ---
    max_email_length: int = Field(default=254, alias="CHATBOT_MAX_EMAIL_LENGTH")
    two_digit_year_threshold: int = Field(default=50, alias="CHATBOT_TWO_DIGIT_YEAR_THRESHOLD")
    min_duration_minutes: int = Field(default=1, alias="CHATBOT_MIN_DURATION_MINUTES")
    max_duration_minutes: int = Field(default=1440, alias="CHATBOT_MAX_DURATION_MINUTES")

    # --- Zoom ---
    zoom_api_base_url: str = Field(default="https://api.zoom.us/v2", alias="ZOOM_API_BASE_URL")
    zoom_access_token: str = Field(default="", alias="ZOOM_ACCESS_TOKEN")

    # --- Redis ---
    redis_url: str = Field(default="", alias="REDIS_URL")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
