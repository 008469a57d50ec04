"""
Runtime Settings for Roundtable
Timing, persistence and injection knobs for the plot lifecycle engine.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, SecretStr


# ============================================================================
# Component Settings
# ============================================================================

class LifecycleSettings(BaseModel):
    """Auto-commit countdown and history sizing."""
    auto_commit_ms: int = Field(default=5000, ge=1000, le=600000)
    history_limit: int = Field(default=5, ge=1, le=50)
    max_recent_directions: int = Field(default=10, ge=1, le=50)
    countdown_tick_seconds: float = Field(default=1.0, gt=0.0, le=10.0)


class ReadinessSettings(BaseModel):
    """Host readiness polling and message-list stability sampling."""
    poll_interval_seconds: float = Field(default=0.5, gt=0.0, le=10.0)
    max_poll_attempts: int = Field(default=60, ge=1, le=1000)
    stability_interval_seconds: float = Field(default=0.3, gt=0.0, le=10.0)
    stable_checks_required: int = Field(default=3, ge=1, le=50)
    stability_timeout_seconds: float = Field(default=10.0, gt=0.0, le=300.0)


class GenerationSettings(BaseModel):
    timeout_seconds: float = Field(default=45.0, gt=0.0, le=600.0)
    message_limit: int = Field(default=5, ge=1, le=100)


class PersistenceSettings(BaseModel):
    """Shared stores are optional; the local cache directory is always used when set."""
    redis_url: Optional[str] = None
    redis_ttl_seconds: Optional[int] = Field(default=None, ge=60)
    supabase_url: Optional[str] = None
    supabase_key: Optional[SecretStr] = None
    cache_dir: Optional[str] = ".roundtable_cache"


class InjectionSettings(BaseModel):
    enabled: bool = True
    frequency: int = Field(default=3, ge=1, le=100)


# ============================================================================
# Master Settings
# ============================================================================

class RoundtableSettings(BaseModel):
    lifecycle: LifecycleSettings = Field(default_factory=LifecycleSettings)
    readiness: ReadinessSettings = Field(default_factory=ReadinessSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    injection: InjectionSettings = Field(default_factory=InjectionSettings)
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def settings_from_env() -> RoundtableSettings:
    """Create settings from ROUNDTABLE_* and store environment variables."""
    settings = RoundtableSettings()

    if os.getenv("ROUNDTABLE_AUTO_COMMIT_MS"):
        settings.lifecycle.auto_commit_ms = int(os.getenv("ROUNDTABLE_AUTO_COMMIT_MS"))
    if os.getenv("ROUNDTABLE_HISTORY_LIMIT"):
        settings.lifecycle.history_limit = int(os.getenv("ROUNDTABLE_HISTORY_LIMIT"))
    if os.getenv("ROUNDTABLE_GENERATION_TIMEOUT"):
        settings.generation.timeout_seconds = float(os.getenv("ROUNDTABLE_GENERATION_TIMEOUT"))
    if os.getenv("ROUNDTABLE_MESSAGE_LIMIT"):
        settings.generation.message_limit = int(os.getenv("ROUNDTABLE_MESSAGE_LIMIT"))
    if os.getenv("ROUNDTABLE_INJECTION_FREQUENCY"):
        settings.injection.frequency = int(os.getenv("ROUNDTABLE_INJECTION_FREQUENCY"))
    settings.injection.enabled = _env_flag("ROUNDTABLE_INJECTION_ENABLED", True)

    # Stores
    settings.persistence.redis_url = os.getenv("REDIS_URL") or None
    if os.getenv("ROUNDTABLE_REDIS_TTL"):
        settings.persistence.redis_ttl_seconds = int(os.getenv("ROUNDTABLE_REDIS_TTL"))
    settings.persistence.supabase_url = os.getenv("SUPABASE_URL") or None
    if os.getenv("SUPABASE_SERVICE_KEY"):
        settings.persistence.supabase_key = SecretStr(os.getenv("SUPABASE_SERVICE_KEY"))
    if os.getenv("ROUNDTABLE_CACHE_DIR") is not None:
        settings.persistence.cache_dir = os.getenv("ROUNDTABLE_CACHE_DIR") or None

    settings.debug = _env_flag("ROUNDTABLE_DEBUG")
    settings.host = os.getenv("ROUNDTABLE_HOST", settings.host)
    if os.getenv("ROUNDTABLE_PORT"):
        settings.port = int(os.getenv("ROUNDTABLE_PORT"))

    return settings
