from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load .env early for local development
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./dogspots.db")

    # Security
    app_secret_key: str = os.getenv("APP_SECRET_KEY", "dev-secret-change-me")
    access_token_exp_minutes: int = int(os.getenv("ACCESS_TOKEN_EXP_MINUTES", str(60 * 24)))

    # Login / registration throttling (requests per window, per client IP)
    login_rate_limit: int = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
    login_rate_window_seconds: int = int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "60"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str = os.getenv("LOG_DIR", "./logs")

    # Suggestion approval
    suggestion_reward_points: int = int(os.getenv("SUGGESTION_REWARD_POINTS", "5"))
    # Used for promoted locations when the suggestion has no coordinates (central London).
    fallback_latitude: float = float(os.getenv("FALLBACK_LATITUDE", "51.507268"))
    fallback_longitude: float = float(os.getenv("FALLBACK_LONGITUDE", "-0.127586"))


settings = Settings()
