"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.

Economic policy (multipliers, weights, tier tables) is NOT here; it lives
in rules.policy_config so it can be stored and edited as data.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Bid Economics Engine"
    debug: bool = False

    # ── Persistence ──────────────────────────────────────
    persistence_backend: str = "memory"  # "memory" | "mongo"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "bid_economics"

    # ── Batch analysis ───────────────────────────────────
    batch_max_size: int = 10
    batch_max_workers: int = 4

    # ── API server ───────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
