"""LearnHub configuration.

Values come from the process environment or a local ``.env`` file; names are
matched case-insensitively (``CASSANDRA_HOSTS`` sets ``cassandra_hosts``).
List values also accept a comma-separated string.
"""

import json
from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


Environment = Literal["development", "staging", "production", "testing"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
StrList = Annotated[list[str], NoDecode]

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    app_name: str = Field(default="learnhub", description="Also the log file stem")
    app_version: str = Field(default="0.1.0")
    environment: Environment = Field(default="development")
    api_host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    api_port: int = Field(default=8000, ge=1, le=65535)

    # Bearer tokens (issued by the identity service, verified here)
    auth_secret_key: str = Field(
        default="learnhub-local-signing-key-not-for-production",
        description="Shared HMAC key used to verify access tokens",
    )
    auth_algorithm: str = Field(default="HS256")
    auth_access_token_expire_minutes: int = Field(
        default=15, ge=1, description="Lifetime of tokens minted by create_access_token"
    )

    # Cassandra
    cassandra_enabled: bool = Field(
        default=True, description="Open a session and create tables at startup"
    )
    cassandra_hosts: StrList = Field(default=["localhost"])
    cassandra_port: int = Field(default=9042)
    cassandra_keyspace: str = Field(
        default="learnhub", pattern=r"^[a-zA-Z][a-zA-Z0-9_]*$"
    )
    cassandra_username: str | None = None
    cassandra_password: str | None = None
    cassandra_protocol_version: int = Field(default=4)
    cassandra_connect_timeout: float = Field(default=10.0, gt=0, description="Seconds")

    # Assessment defaults, used when an instructor leaves a value unset
    default_passing_score: int = Field(
        default=70, ge=0, le=100, description="Pass mark (percent) for new assessments"
    )
    default_quiz_max_attempts: int = Field(default=3, ge=1)

    # Logging
    log_level: LogLevel = Field(default="DEBUG")
    log_format: Literal["json", "console"] = Field(
        default="console", description="Console renderer; files are always JSON"
    )
    log_include_caller_info: bool = Field(default=True)
    log_dir: str = Field(default="logs")
    log_file_max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    log_file_backup_count: int = Field(default=5, ge=0)
    log_requests: bool = Field(default=True)
    log_exclude_paths: StrList = Field(
        default=["/health"],
        description="Path prefixes that are not access-logged",
    )

    # CORS
    cors_origins: StrList = Field(default=["*"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: StrList = Field(default=["*"])
    cors_allow_headers: StrList = Field(default=["*"])
    cors_max_age: int = Field(default=600, ge=0)

    @field_validator(
        "cassandra_hosts",
        "log_exclude_paths",
        "cors_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def split_comma_separated(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    @field_validator("auth_secret_key")
    @classmethod
    def check_secret_length(cls, value: str) -> str:
        if len(value) < MIN_SECRET_LENGTH:
            msg = f"auth_secret_key must be at least {MIN_SECRET_LENGTH} characters"
            raise ValueError(msg)
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
