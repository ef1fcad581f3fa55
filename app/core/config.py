"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Pulse Coach — grounded biometric coaching."
    VERSION: str = "0.1.0"
    AUTHORS: List[str] = ["Pulse Coach contributors"]
    PROJECT_URL: str = "https://github.com/pulse-coach/pulse-coach"

    DEBUG: bool = True

    # Dev server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Data
    DATA_CSV_PATH: Optional[str] = None
    DATA_WINDOW_DAYS: int = 30

    # Retrieval
    RETRIEVAL_MAX_RESULTS: int = 10
    SUMMARY_MAX_RESULTS: int = 8

    # Forecasting
    PREDICTION_CONFIDENCE_THRESHOLD: float = 0.6

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Global settings instance
settings = Settings()
