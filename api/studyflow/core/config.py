from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import logging
import os
from pathlib import Path

_logger = logging.getLogger(__name__)

# Load .env explicitly before creating Settings so os.getenv lookups below see it.
# Look for .env in api directory (parent of studyflow directory)
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

try:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        _logger.info(f"Loaded .env file from: {env_path}")
    else:
        # Fallback to current directory
        current_env = Path(".env")
        if current_env.exists():
            load_dotenv(current_env, override=False)
            _logger.info(f"Loaded .env file from: {current_env.absolute()}")
        else:
            _logger.debug(f".env file not found at {env_path} or {current_env.absolute()}")
except OSError as e:
    _logger.warning(f"Error loading .env file: {e}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - hosting platforms usually provide DATABASE_URL (uppercase)
    database_url: str = ""

    # Runtime environment ('development', 'production', ...)
    environment: str = "production"

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]

    # Google Generative AI (Gemini) API, used for flashcard generation
    google_gemini_api_key: str = ""
    gemini_model_name: str = "gemini-2.5-flash"
    gemini_timeout_seconds: int = 60

    # Upper bound on cards requested from the LLM in one call
    flashcard_generation_max_count: int = 20

    # Open study sessions older than this are evicted from memory
    study_session_max_age_hours: int = 24

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        # Ensure we read DATABASE_URL from environment even when lowercase lookup misses it
        if not kwargs.get("database_url"):
            kwargs["database_url"] = os.getenv("DATABASE_URL", "")
        if not kwargs.get("google_gemini_api_key"):
            kwargs["google_gemini_api_key"] = os.getenv("GOOGLE_GEMINI_API_KEY", "")
        super().__init__(**kwargs)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")


# Create settings instance
settings = Settings()

# Validate required DATABASE_URL
if not settings.database_url:
    raise ValueError("DATABASE_URL environment variable is required")
