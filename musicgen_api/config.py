"""
Configuration Management
Environment-based settings for Supabase, Suno and the request pipeline
"""

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when required settings are missing"""


class Settings(BaseSettings):
    # Supabase (two accepted naming conventions)
    supabase_url: str = Field(
        "",
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    supabase_key: str = Field(
        "",
        validation_alias=AliasChoices(
            "SUPABASE_SERVICE_KEY",
            "SUPABASE_SERVICE_ROLE_KEY",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY",
        ),
    )

    # Suno API
    suno_base_url: str = Field(
        "https://api.sunoapi.org",
        validation_alias=AliasChoices("SUNO_BASE_URL", "SUNO_API_BASE_URL"),
    )
    suno_api_key: str = Field("", validation_alias=AliasChoices("SUNO_API_KEY"))
    suno_callback_url: str = Field("", validation_alias=AliasChoices("SUNO_CALLBACK_URL"))
    suno_model: str = "V4_5"

    # Server
    port: int = Field(3000, validation_alias=AliasChoices("PORT"))
    environment: str = Field(
        "production",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )

    # Request pipeline
    rate_limit_window_ms: int = Field(900000, validation_alias=AliasChoices("RATE_LIMIT_WINDOW_MS"))
    rate_limit_max_requests: int = Field(100, validation_alias=AliasChoices("RATE_LIMIT_MAX_REQUESTS"))
    max_body_bytes: int = Field(10 * 1024 * 1024, validation_alias=AliasChoices("MAX_BODY_BYTES"))
    api_prefix: str = "/api/"

    # Logging
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_format: str = Field("json", validation_alias=AliasChoices("LOG_FORMAT"))

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("rate_limit_window_ms", "rate_limit_max_requests", "max_body_bytes")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def rate_limit_window_seconds(self) -> int:
        """Window length for the limiter; sub-second windows round up to one second"""
        return max(1, self.rate_limit_window_ms // 1000)

    def missing_credentials(self) -> List[str]:
        """Names of the required Supabase variables that are not set"""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL or NEXT_PUBLIC_SUPABASE_URL")
        if not self.supabase_key:
            missing.append(
                "SUPABASE_SERVICE_KEY or SUPABASE_SERVICE_ROLE_KEY or NEXT_PUBLIC_SUPABASE_ANON_KEY"
            )
        return missing


@lru_cache()
def get_settings() -> Settings:
    """Get settings instance"""
    return Settings()


def validate_configuration(settings: Settings) -> None:
    """Fail fast when the Supabase credentials are absent"""
    missing = settings.missing_credentials()
    if missing:
        raise ConfigurationError(f"Missing Supabase credentials. Required: {'; '.join(missing)}")
