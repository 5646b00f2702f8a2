from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AliasChoices, AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _db_field(default, env_name: str, field_name: str):
    return Field(default=default, validation_alias=AliasChoices(env_name, field_name))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Variable names match field names case-insensitively, except for the
    database connection which reads the shorter ``DB_*`` names.
    """

    app_name: str = Field(default="ChatLink API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=True, description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:8081",
            "http://localhost:19006",
            "http://127.0.0.1",
            "http://127.0.0.1:8081",
        ],
        description="Comma separated list of allowed CORS origins",
    )

    database_driver: str = _db_field("mysql+pymysql", "DB_DRIVER", "database_driver")
    database_user: str = _db_field("chatlink", "DB_USER", "database_user")
    database_password: str = _db_field("chatlink", "DB_PASSWORD", "database_password")
    database_host: str = _db_field("db", "DB_HOST", "database_host")
    database_port: int = _db_field(3306, "DB_PORT", "database_port")
    database_name: str = _db_field("chatlink", "DB_NAME", "database_name")

    jwt_secret_key: str = Field(default="changeme", description="Run scripts/generate_jwt_secret.py")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    password_min_length: int = Field(
        default=6,
        description="Minimum number of characters accepted for new passwords",
    )

    chat_history_default_limit: int = 50
    chat_history_max_limit: int = 200
    chat_message_max_length: int = 2000
    websocket_keepalive_timeout_seconds: float = Field(
        default=30.0,
        description="Idle seconds before a WebSocket receive wakes up to consider a ping",
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=30.0,
        description="Minimum seconds between server pings on an idle socket",
    )

    media_root: Path = Path("uploads")
    avatar_base_url: str = Field(
        default="/api/profile/avatar",
        description="Base URL for serving user avatars",
    )
    max_upload_size: int = Field(default=5 * 1024 * 1024, description="Maximum avatar size in bytes")

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url(self) -> str:
        if self.database_driver.startswith("sqlite"):
            return f"{self.database_driver}:///{self.database_name}"
        return (
            f"{self.database_driver}://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v):  # type: ignore[override]
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("media_root", mode="before")
    @classmethod
    def resolve_media_root(cls, value: str | Path) -> Path:
        return Path(value).resolve()


@lru_cache
def get_settings() -> Settings:
    return Settings()
