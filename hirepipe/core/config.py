import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    env = os.getenv("HP_ENVIRONMENT", "").strip().lower()
    files = [".env"]
    if env and env != "development":
        files.append(f".env.{env}")
    else:
        files.append(".env.local")
    return files


class Settings(BaseSettings):
    app_name: str = "hirepipe"
    environment: str = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    database_url: str
    database_echo: bool = False
    # Local and test databases only; production schemas are managed outside the app.
    database_create_schema: bool = False

    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "jobs"
    queue_dedupe_ttl_seconds: int = 24 * 60 * 60
    worker_concurrency: int = 5
    worker_poll_timeout_seconds: int = 5
    job_max_attempts: int = 1
    retry_base_seconds: int = 5
    retry_max_seconds: int = 5 * 60
    retry_poll_seconds: int = 2

    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    llm_timeout_seconds: float = 120.0
    llm_max_retries: int = 2

    interview_total_questions: int = 8
    interview_max_tokens: int = 1024
    pr_generate_max_tokens: int = 8192
    scoring_max_tokens: int = 4096
    rubric_max_tokens: int = 4096
    behavioral_batch_limit: int = 100

    model_config = SettingsConfigDict(env_prefix="HP_", env_file=_env_files(), extra="ignore")


settings = Settings()
