from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "jobly-api"
    app_version: str = "0.1.0"
    environment: str = "dev"
    log_level: str = "info"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    secret_key: str = "secret-dev"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int | None = None
    password_hash_time_cost: int = 2
    generated_password_length: int = 12
    otel_enabled: bool = True
    otel_service_name: str = "jobly-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True
    otel_excluded_urls: str = "healthz,readyz"

    model_config = SettingsConfigDict(env_prefix="JOBLY_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
