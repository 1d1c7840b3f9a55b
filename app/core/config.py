"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Dealer Photo Feed"
    environment: str = "development"
    debug: bool = True
    log_json: bool = True

    api_v1_prefix: str = "/v1"
    cors_allowed_origins: List[str] = ["*"]

    redis_url: str = "redis://localhost:6379/0"

    celery_broker_url: str | None = None
    celery_result_backend: str | None = None

    # Shared secret the inventory consumer sends when polling the feed.
    feed_api_key: Optional[str] = None
    public_base_url: Optional[str] = None

    operator_api_token: Optional[str] = None
    operator_token_header: str = "Authorization"

    transformation_backend: Literal["http", "tinify"] = "http"
    transformation_api_url: Optional[str] = None
    transformation_api_key: Optional[str] = None
    transformation_timeout_seconds: float = 60.0
    source_image_max_bytes: int = 4 * 1024 * 1024

    tinypng_api_key: Optional[str] = None
    image_storage_bucket: Optional[str] = None
    storage_public_base_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"

    optimized_path_prefix: str = "optimized"
    job_error_max_length: int = 500


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
