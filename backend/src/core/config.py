"""
Application configuration using Pydantic Settings.
Following Factor 1: Own Your Configuration.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        # Load base first, then environment-specific override
        env_file=[
            ".env.base",  # Common defaults (committed)
            f".env.{ENV}",  # Environment overrides (gitignored)
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Database connection
    mongodb_url: str = "mongodb://localhost:27017/finbot"

    # Security
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Bearer tokens are issued by the external auth service (HS256, shared secret)
    auth_jwt_secret: str = "dev-jwt-secret-change-in-production"
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: str = "authenticated"

    # External APIs - LLM
    dashscope_api_key: str = ""  # Alibaba Cloud DashScope API key

    # LLM generation parameters
    default_llm_model: str = "qwen-plus"
    llm_temperature: float = 0.7
    llm_top_p: float = 0.9
    llm_top_k: int = 40
    llm_offline_fallback: bool = True  # Canned replies when no API key is set

    # Chat sessions
    chat_stream_timeout_seconds: float = 120.0
    chat_title_max_length: int = 40
    session_ttl_minutes: int = 60
    session_cleanup_interval_seconds: int = 60

    # Financial summary
    default_currency_symbol: str = "₹"
    estimated_tax_rate: float = 25.0  # Flat percentage, advisory only
    default_goal_target: float = 50_000.0

    @property
    def database_name(self) -> str:
        """Extract database name from MongoDB URL."""
        # Extract database name and strip query parameters
        db_with_params = self.mongodb_url.split("/")[-1]
        return db_with_params.split("?")[0] if "?" in db_with_params else db_with_params

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
