from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.access import RESERVED_IDENTITIES

MAX_FEE_BASIS_POINTS = 1000


class DispatchSettings(BaseSettings):
    platform_owner: str = Field(
        default="platform",
        min_length=1,
        description="Identity that receives platform fees and may change the fee level",
    )
    fee_basis_points: int = Field(
        default=250,
        ge=0,
        le=MAX_FEE_BASIS_POINTS,
        description="Initial platform fee in basis points (10000 = 100%)",
    )
    notification_history: int = Field(
        default=1000,
        ge=10,
        description="Number of recent notifications retained for late subscribers",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="DISPATCH_")

    @field_validator("platform_owner")
    @classmethod
    def validate_platform_owner(cls, v: str) -> str:
        if v in RESERVED_IDENTITIES:
            raise ValueError(f"Platform owner cannot be the reserved account {v}")
        return v


class APISettings(BaseSettings):
    key: str = ""
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    model_config = SettingsConfigDict(env_prefix="API_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "APISettings":
        if not self.key:
            raise ValueError("Required credential not provided: API_KEY")
        return self


class CORSSettings(BaseSettings):
    origins: str = "http://localhost:5173,http://localhost:3000"

    model_config = SettingsConfigDict(env_prefix="CORS_")


class RedisSettings(BaseSettings):
    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = Field(default=0, ge=0)
    password: str = ""
    socket_timeout: float = Field(
        default=2.0, gt=0, description="Seconds to wait on a Redis command before giving up"
    )

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Redis host must not be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "RedisSettings":
        if self.enabled and not self.password:
            raise ValueError("Required credential not provided: REDIS_PASSWORD")
        return self


class Settings(BaseSettings):
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    api: APISettings = Field(default_factory=APISettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
