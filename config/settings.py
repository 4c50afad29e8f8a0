"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    MAX_QUESTIONS: int = Field(default=5, ge=1)
    CODING_CHALLENGE_AT_QUESTION: int = Field(default=2, ge=1)

    CODE_TIMEOUT_S: float = Field(default=5.0, gt=0)
    CODE_MEMORY_LIMIT_MB: int = Field(default=512, ge=64)
    CODE_MAX_OUTPUT_BYTES: int = 65536

    PERSONA_DEFAULT: str = "friendly"
    DIFFICULTY_DEFAULT: str = "mid"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
