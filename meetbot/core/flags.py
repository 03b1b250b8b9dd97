"""
Central feature flags. One file controls every external dependency.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the system uses a local/mock fallback. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Auth ─────────────────────────────────────────────────────────
    use_auth: bool = Field(default=False, alias="FF_USE_AUTH")
    # ON  → Bearer JWT validated with JWT_SECRET. User ID from the "sub" claim.
    # OFF → Dev user injected. No token needed.

    # ── Action provider ──────────────────────────────────────────────
    use_zoom: bool = Field(default=False, alias="FF_USE_ZOOM")
    # ON  → Meetings, recordings and users go to the Zoom REST API. Needs ZOOM_ACCESS_TOKEN.
    # OFF → In-memory provider. Meetings live for the lifetime of the process.

    # ── Cache / Realtime ─────────────────────────────────────────────
    use_redis: bool = Field(default=False, alias="FF_USE_REDIS")
    # ON  → Redis pub/sub for realtime frontend notifications. Needs REDIS_URL.
    # OFF → Notifications silently skipped. Nothing breaks.

    # ── Session housekeeping ─────────────────────────────────────────
    enable_session_sweeper: bool = Field(default=True, alias="FF_ENABLE_SESSION_SWEEPER")
    # ON  → Background task purges stale sessions every CHATBOT_SWEEP_INTERVAL_SECONDS.
    # OFF → Sessions only time out lazily; nothing is purged.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
