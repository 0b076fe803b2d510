from typing import List, Optional, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "SKN NotesHub"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"

    # Security
    SECRET_KEY: str = "change-me-in-noteshub-env"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            v = v.strip("[").strip("]").strip('"').strip("'")
            if not v:
                return []
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    # Record store. Local SQLite by default, Supabase Postgres (asyncpg) in production.
    DATABASE_URL: str = "sqlite+aiosqlite:///./noteshub.db"

    # Object store: "local" writes under UPLOAD_DIR, "supabase" uses Supabase Storage
    STORAGE_BACKEND: str = "local"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: Optional[str] = "http://localhost:8000"
    RESOURCES_BUCKET: str = "resources"
    AVATARS_BUCKET: str = "avatars"

    # Limits
    MAX_UPLOAD_MB: int = 25
    MAX_AVATAR_MB: int = 2
    MESSAGE_MAX_LENGTH: int = 500
    PRESENCE_WINDOW_SECONDS: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("local", "supabase"):
            raise ValueError(f"Unknown STORAGE_BACKEND: {v}")
        return v

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file="noteshub.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
