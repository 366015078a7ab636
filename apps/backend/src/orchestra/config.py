from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

ROOT_DIR = Path(__file__).resolve().parents[4]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ------------------------------------------------------------------
    # Session defaults (used when a create request leaves a field unset)
    # ------------------------------------------------------------------
    default_base_delay_min_ms: int = 800
    default_base_delay_max_ms: int = 2500
    default_warning_pct: float = 0.10
    default_error_pct: float = 0.05
    long_running_delay_ms: int = 10_000

    # ------------------------------------------------------------------
    # Streaming / polling
    # ------------------------------------------------------------------
    poll_interval_ms: int = 200

    # ------------------------------------------------------------------
    # Storage and service
    # ------------------------------------------------------------------
    transcripts_dir: Path = ROOT_DIR / "transcripts"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
