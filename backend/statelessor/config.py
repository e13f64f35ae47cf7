"""Application configuration using Pydantic Settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RULES_DIR = Path(__file__).resolve().parent / "rules"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_env: str = "development"
    app_debug: bool = False
    log_level: str = "INFO"

    # Catalogs
    rules_path: Path = RULES_DIR / "stateful-patterns.json"
    remediation_actions_path: Path = RULES_DIR / "remediation-actions.json"

    # Analysis
    context_window: int = 50
    max_workers: int = os.cpu_count() or 4
    file_timeout_seconds: float = 30.0

    # Storage
    data_dir: Path = Path("/tmp/statelessor/data")
    clone_base: Path = Path("/tmp/statelessor/repos")
    clone_timeout_seconds: int = 300
    # "path" analyses are refused unless set, and must point inside it
    source_root: Optional[Path] = None

    # CORS
    cors_origins: List[str] = ["*"]

    @field_validator("context_window", "max_workers", mode="after")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return level

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
