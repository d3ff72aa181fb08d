"""Configuration management for the matching engine."""

from typing import Optional
from pydantic import ValidationError
from pydantic_settings import BaseSettings


REQUIRED_VARS = [
    "SUPABASE_URL",
    "SUPABASE_KEY",
]


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    # Required (persistent match cache)
    supabase_url: str
    supabase_key: str

    # Optional enrichment service
    enrichment_url: Optional[str] = None
    enrichment_api_key: Optional[str] = None
    enrichment_timeout_seconds: float = 20.0

    # Matching
    min_score: int = 30
    ai_candidate_limit: int = 50
    below_threshold_fallback_count: int = 10
    scoring_weights_path: Optional[str] = None

    # Cache
    match_cache_ttl_days: int = 7
    cleanup_interval_minutes: int = 60

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "case_sensitive": False}


def validate_config() -> Settings:
    """Load and validate configuration from environment.

    Raises ValueError with descriptive message listing ALL missing
    required variables (not just the first one).
    """
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        # Collect missing fields from the pydantic error
        missing_fields = {
            str(error["loc"][0]).upper()
            for error in exc.errors()
            if error["type"] == "missing" and error["loc"]
        }
        missing = [var for var in REQUIRED_VARS if var in missing_fields]
        if missing:
            names = ", ".join(missing)
            raise ValueError(
                f"Missing required environment variable(s): {names}. "
                "Please set them in your .env file or environment."
            ) from exc
        raise


def load_config() -> Settings:
    """Load configuration from environment (startup entry point)."""
    return validate_config()
