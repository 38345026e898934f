import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_allowed_origins(raw: Any) -> list[str]:
    """Parse ALLOWED_ORIGINS into a list of origins.

    The documented format is a comma separated list
    (``https://example.com,https://www.example.com``). A JSON list is accepted
    as well. Values are compared verbatim against the request Origin, so no
    scheme is inferred and trailing slashes are dropped.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(v).strip().rstrip("/") for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip().rstrip("/") for v in parsed]
            return [v for v in items if v]

    origins: list[str] = []
    for part in re.split(r"[,\s]+", raw):
        part = part.strip().strip("\"'").rstrip("/")
        if part and part not in origins:
            origins.append(part)
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Deployment environment (NODE_ENV kept for parity with the web frontend)
    node_env: str = "development"

    # Comma separated allow-list checked against Origin/Referer in production.
    # NoDecode keeps pydantic-settings from JSON-decoding the raw value.
    allowed_origins: Annotated[list[str], NoDecode] = []

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def decode_allowed_origins(cls, v: Any) -> list[str]:
        return _parse_allowed_origins(v)

    # PostgreSQL settings
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "rsvp"
    db_password: str = "rsvp"
    db_name: str = "rsvp"
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_recycle: int = 300
    db_pool_pre_ping: bool = True

    # Explicit DATABASE_URL (takes priority over db_* settings)
    database_url_override: str = Field(default="", validation_alias="DATABASE_URL")

    # Create tables on startup (handy for local development and tests)
    db_create_tables: bool = True

    @property
    def database_url(self) -> str:
        """Build database connection URL.

        Priority:
        1. database_url_override (DATABASE_URL)
        2. Built from db_* settings
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def is_production(self) -> bool:
        return self.node_env.strip().lower() == "production"

    # Rate limiting settings
    disable_rsvp_rate_limit: bool = False
    rate_limit_sweep_interval_seconds: float = 60.0
    # Chance of an opportunistic sweep on each check (0 = scheduled sweep only)
    rate_limit_sweep_probability: float = 0.0

    # CSRF settings
    csrf_token_bytes: int = 32
    csrf_token_ttl_minutes: int = 60
    csrf_sweep_interval_seconds: float = 300.0
    csrf_cookie_name: str = "__Host-csrf-token"
    csrf_header_name: str = "x-csrf-token"
    csrf_single_use: bool = False

    # Request body limit (bytes)
    max_body_size: int = 64 * 1024

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator(
        "csrf_token_bytes",
        "csrf_token_ttl_minutes",
        "max_body_size",
        "db_pool_size",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("rate_limit_sweep_interval_seconds", "csrf_sweep_interval_seconds")
    @classmethod
    def validate_interval_positive(cls, v: float) -> float:
        """Validate sweep intervals are positive."""
        if v <= 0:
            raise ValueError("sweep interval must be positive")
        return v

    @field_validator("rate_limit_sweep_probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("rate_limit_sweep_probability must be between 0 and 1")
        return v

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )


# Global settings instance
settings = Settings()
