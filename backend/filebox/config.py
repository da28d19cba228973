"""FileBox configuration — Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "FileBox"
    debug: bool = True
    environment: str = "development"
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:8081",
        "http://localhost:19006",
    ]

    # Firebase project
    api_key: str = ""
    storage_bucket: str = ""

    # Provider endpoints (point these at the emulators for local work)
    auth_url: str = "https://identitytoolkit.googleapis.com"
    token_url: str = "https://securetoken.googleapis.com"
    storage_url: str = "https://firebasestorage.googleapis.com"
    request_timeout_seconds: float = 10.0

    # Catalog behaviour
    upload_root: str = "uploads"
    collision_policy: str = "overwrite"  # overwrite, reject, suffix
    list_page_size: int = 1000

    # Storage paths (relative resolved from backend/ at runtime)
    data_dir: str = "./data"
    database_path: str = "./data/filebox.db"

    max_db_connections: int = 5

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="FILEBOX_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:8081"]

    @field_validator("collision_policy")
    @classmethod
    def check_collision_policy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("overwrite", "reject", "suffix"):
            raise ValueError(f"Unknown collision policy: {value}")
        return value

    @field_validator("upload_root")
    @classmethod
    def strip_upload_root(cls, value: str) -> str:
        return value.strip("/")

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure data paths are absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        for field in ("data_dir", "database_path"):
            val = getattr(self, field)
            if not Path(val).is_absolute():
                setattr(self, field, str(base / val))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
