"""
Detection Context Core Configuration

This module manages all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

import json
import math
from typing import Any, Literal, Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    api_prefix: str = "/api/v1"

    # Falcon API
    falcon_base_url: str = "https://api.crowdstrike.com"
    falcon_client_id: Optional[str] = None
    falcon_client_secret: Optional[str] = None
    falcon_timeout: float = 30.0

    # Context collection
    collection_name: str = "detection_context"

    # Translation workflow
    workflow_name: str = "translate-with-charlotte-ai"
    workflow_poll_interval: float = Field(default=5.0, gt=0)
    workflow_poll_budget: float = Field(default=60.0, gt=0)

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]
    cors_credentials: bool = True
    cors_methods: list[str] = ["*"]
    cors_headers: list[str] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from string, list, or JSON string"""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            if isinstance(v, str):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            return v
        return ["*"]

    @field_validator("falcon_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.env == "production"

    @property
    def workflow_poll_max_attempts(self) -> int:
        """Number of polls that fit in the polling budget (60s / 5s = 12)"""
        return max(1, math.floor(self.workflow_poll_budget / self.workflow_poll_interval))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache for singleton pattern.
    """
    return Settings()


# Export singleton instance
settings = get_settings()
