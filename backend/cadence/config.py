"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Cadence"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./cadence.sqlite"
    auto_create_tables: bool = True

    # AI Provider
    ai_provider: str = "anthropic"  # openrouter, ollama, openai, anthropic
    ai_model: str = "claude-3-5-haiku-20241022"
    ai_base_url: Optional[str] = None  # For Ollama: http://localhost:11434

    # API Keys (optional based on provider)
    openrouter_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # AI Feature Flags
    ai_recurring_detection: bool = True

    # Recurring analysis
    ai_min_transactions: int = 10
    ai_max_transactions: int = 500
    ai_lookback_months: int = 6
    display_lookback_months: int = 12
    recurring_analysis_cache_ttl_seconds: int = 86400

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
