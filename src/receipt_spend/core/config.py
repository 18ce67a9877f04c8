from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    base_url: str = "http://localhost:8000"

    database_url: str = "sqlite:///./receipt_spend.db"
    redis_url: str = "redis://localhost:6379/0"

    local_storage_path: Path = Path(".local_storage")
    max_upload_bytes: int = 10 * 1024 * 1024
    max_upload_files: int = 50

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    receipt_ai_enabled: bool = True
    receipt_ai_timeout_seconds: float = 30.0
    receipt_ai_max_chars: int = 12000

    extraction_batch_size: int = 10
    session_max_age_minutes: int = 120
    session_cleanup_interval_seconds: int = 15 * 60


settings = Settings()
