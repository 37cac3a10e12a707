"""Configuration management for the triage engine."""

from typing import Optional
from pydantic_settings import BaseSettings

from ..adapters.qualification import AI_GATEWAY_URL, DEFAULT_SCORING_MODEL
from ..adapters.drafting import DEFAULT_DRAFT_MODEL
from ..adapters.search import DEFAULT_SEARCH_MODEL, PERPLEXITY_URL


REQUIRED_VARS = [
    "SUPABASE_URL",
    "SUPABASE_KEY",
]


class Config(BaseSettings):
    """Application configuration from environment variables."""

    # Required
    supabase_url: str
    supabase_key: str

    # Collaborators
    perplexity_api_key: Optional[str] = None
    perplexity_url: str = PERPLEXITY_URL
    ai_gateway_api_key: Optional[str] = None
    ai_gateway_url: str = AI_GATEWAY_URL
    search_model: str = DEFAULT_SEARCH_MODEL
    scoring_model: str = DEFAULT_SCORING_MODEL
    draft_model: str = DEFAULT_DRAFT_MODEL

    # Policy
    snooze_hours: int = 24
    rubric_path: Optional[str] = None

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}


def validate_config() -> Config:
    """Load and validate configuration from environment.

    Raises ValueError with descriptive message listing ALL missing
    required variables (not just the first one).
    """
    try:
        return Config()  # type: ignore[call-arg]
    except Exception as exc:
        missing = []
        err_str = str(exc)
        for var in REQUIRED_VARS:
            if var.lower() in err_str.lower():
                missing.append(var)
        if missing:
            names = ", ".join(missing)
            raise ValueError(
                f"Missing required environment variable(s): {names}. "
                "Please set them in your .env file or environment."
            ) from exc
        raise


def load_config() -> Config:
    """Load configuration from environment (startup entry point)."""
    return validate_config()
