"""
Configuration settings for the site engine
"""
import os
import logging
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

# Configure basic logger for config module
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings"""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    PORT: int = int(os.getenv("PORT", "4000"))

    # Completion API
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_API_URL: str = os.getenv(
        "OPENAI_API_URL",
        "https://api.openai.com/v1/chat/completions"
    )
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4.1")

    # Generation Settings
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", "180"))
    LLM_JSON_MODE: bool = os.getenv("LLM_JSON_MODE", "true").lower() == "true"

    # Netlify deploys
    NETLIFY_SITE_ID: str = os.getenv("NETLIFY_SITE_ID", "")
    NETLIFY_AUTH_TOKEN: Optional[str] = os.getenv("NETLIFY_AUTH_TOKEN")
    NETLIFY_COMMAND: str = os.getenv("NETLIFY_COMMAND", "netlify")
    NETLIFY_JSON_OUTPUT: bool = os.getenv("NETLIFY_JSON_OUTPUT", "true").lower() == "true"
    DEPLOY_TIMEOUT: float = float(os.getenv("DEPLOY_TIMEOUT", "300"))
    DEPLOY_URL_PATTERN: str = os.getenv("DEPLOY_URL_PATTERN", r"https://[^\s]+\.netlify\.app")
    DEPLOY_SCRATCH_ROOT: Optional[str] = os.getenv("DEPLOY_SCRATCH_ROOT")
    # serialize | reject | parallel
    DEPLOY_CONCURRENCY: str = os.getenv("DEPLOY_CONCURRENCY", "serialize")

    # Workspaces (in-memory editor sessions)
    WORKSPACE_MAX_SESSIONS: int = int(os.getenv("WORKSPACE_MAX_SESSIONS", "200"))
    WORKSPACE_IDLE_TTL: float = float(os.getenv("WORKSPACE_IDLE_TTL", "3600"))

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    GENERATE_RATE_LIMIT: str = os.getenv("GENERATE_RATE_LIMIT", "5/minute")

    # Monitoring
    SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN")
    SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")
    SENTRY_TRACES_SAMPLE_RATE: float = float(
        os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")
    )

    # CORS - comma-separated list of allowed origins
    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"
    )

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()


def validate_required_config():
    """Validate required configuration on startup"""
    errors = []

    if not settings.OPENAI_API_KEY:
        errors.append("OPENAI_API_KEY must be configured")

    if not settings.NETLIFY_SITE_ID:
        errors.append("NETLIFY_SITE_ID must be configured to deploy sites")

    if settings.DEPLOY_CONCURRENCY not in ("serialize", "reject", "parallel"):
        errors.append(
            f"DEPLOY_CONCURRENCY must be serialize, reject or parallel, got {settings.DEPLOY_CONCURRENCY!r}"
        )

    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        if settings.ENVIRONMENT == "production":
            raise ValueError(f"Missing required configuration: {', '.join(errors)}")

    return len(errors) == 0
