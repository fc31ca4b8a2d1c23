"""Tiempos-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEMO_BACKEND_URL = "https://demo.local"
PLACEHOLDER_MARKER = "your-project"

_EMULATOR_ENVIRONMENTS = ("development", "test")


class TiemposSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TIEMPOS_")

    environment: str = "development"

    # Hosted backend. Left empty (or placeholder) to run against the emulator.
    backend_url: str = ""
    anon_key: str = ""
    request_timeout: int = 30

    # Emulated round-trip latency, in seconds
    latency_read: float = 0.1
    latency_write: float = 0.2
    latency_collection: float = 0.3
    latency_auth: float = 0.8
    latency_scale: float = 1.0

    # Durable session slot
    session_store_path: str = "./data/tiempos_session.json"
    session_storage_key: str = "tiempospro_demo_session"

    # Fixture seeding
    seed_users_per_role: int = 50
    seed_history_seconds: int = 1_000_000
    seed_rng: Optional[int] = None

    log_level: str = "INFO"

    @property
    def use_emulator(self) -> bool:
        """True when no usable backend endpoint is configured."""
        url = self.backend_url.strip()
        return (
            not url
            or PLACEHOLDER_MARKER in url
            or url.rstrip("/") == DEMO_BACKEND_URL
        )

    def validate_for_production(self) -> None:
        """Raise if the in-memory emulator would serve a non-development environment."""
        if not self.use_emulator:
            return

        if self.environment not in _EMULATOR_ENVIRONMENTS:
            raise RuntimeError(
                f"No backend configured for '{self.environment}' environment. "
                "Set TIEMPOS_BACKEND_URL and TIEMPOS_ANON_KEY to a live backend."
            )

        warnings.warn(
            "TIEMPOS_BACKEND_URL is not set; running against the in-memory emulator",
            UserWarning,
            stacklevel=2,
        )


@lru_cache
def get_settings() -> TiemposSettings:
    settings = TiemposSettings()
    settings.validate_for_production()
    return settings
