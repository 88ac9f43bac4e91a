from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import string


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True

    # Application
    app_name: str = "Links2Go"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 3001

    # Public base URL used to build short URLs
    base_url: str = "http://localhost:3001"

    # Redis (the only data store)
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0
    redis_connect_timeout: float = 2.0

    # Short code format
    short_code_length: int = 6
    short_code_alphabet: str = string.ascii_lowercase + string.ascii_uppercase + string.digits

    # Click recording (detached from the redirect response)
    click_record_timeout: float = 2.0
    shutdown_drain_timeout: float = 5.0

    # Metrics
    metrics_backend: str = "prometheus"  # Options: "prometheus", "null"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
