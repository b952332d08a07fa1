"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage gateway
    okapi_url: str = "http://localhost:9130"
    okapi_tenant: str = "diku"
    okapi_token: str = ""

    # Circulation rules: "local" evaluates the rule table in-process,
    # "remote" calls the rules-application endpoint
    circulation_rules_source: str = "local"

    # Zone in which fixed due date schedule bands are expressed
    timezone: str = "UTC"

    # Service
    service_name: str = "circulation-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0


settings = Settings()
