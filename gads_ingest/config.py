"""
Configuration management for the editor export ingest service
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Google Ads Editor Ingest"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Database
    database_url: str = "sqlite:///./gads_ingest.db"

    # Flush thresholds per record kind
    campaign_batch_size: int = 100
    ad_group_batch_size: int = 500
    keyword_batch_size: int = 1000
    ad_batch_size: int = 500

    # Streaming
    progress_interval_rows: int = 100_000
    fingerprint_prefix_bytes: int = 10_240  # first 10KB identifies a file
    read_chunk_size: int = 64 * 1024
    max_upload_bytes: int = 500 * 1024 * 1024

    # Wall-clock budget for one import invocation
    execution_budget_seconds: float = 300.0

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
