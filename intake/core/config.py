from enum import Enum
from typing import Any, List, Optional
from urllib.parse import quote_plus

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaVariant(str, Enum):
    """Which submission shapes a deployment exposes."""

    COMBINED = "combined"
    SPLIT = "split"


SQLITE_FALLBACK_URL = "sqlite:///./intake.db"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Contact Intake API"
    VERSION: str = "1.0.0"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = "logs"

    # --- Submissions ---
    SCHEMA_VARIANT: SchemaVariant = SchemaVariant.SPLIT
    RESUME_MAX_BYTES: int = 5 * 1024 * 1024
    RESUME_CONTENT_TYPE: str = "application/pdf"
    RESUME_BUCKET: str = "resumes"
    RESUME_ROUTE_PREFIX: str = "/api/resume"
    BLOB_CHUNK_SIZE: int = Field(
        default=255 * 1024,
        gt=0,
        description="Size of each stored resume chunk in bytes",
    )

    # --- CORS ---
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:3001",
            "https://int-elligence.co.uk",
        ],
        description="Explicit CORS allow-list; FRONTEND_URL is appended to it",
    )
    FRONTEND_URL: Optional[str] = None
    CORS_ALLOW_ALL_ORIGINS: bool = Field(
        default=True,
        description="Reflect any Origin. Set to false to enforce ALLOWED_ORIGINS.",
    )
    ALLOWED_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Request-ID"],
    )

    # --- Database Config ---
    DB_HOST: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_PORT: Optional[str] = "5432"
    DB_NAME: Optional[str] = "postgres"

    # --- Connection Pool ---
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True
    DB_CONNECT_TIMEOUT: int = 5
    DB_AUTO_CREATE: bool = True

    # --- Master URL ---
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("SCHEMA_VARIANT", mode="before")
    @classmethod
    def normalize_variant(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v

        values = info.data
        if not values.get("DB_HOST") or not values.get("DB_USER"):
            return SQLITE_FALLBACK_URL

        user = values.get("DB_USER")
        # Passwords may contain @, # or / and must be quoted.
        password = quote_plus(values.get("DB_PASSWORD") or "")
        host = values.get("DB_HOST")
        port = values.get("DB_PORT") or "5432"
        db = values.get("DB_NAME") or "postgres"

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def validate_production_database(
        cls, v: Optional[str], info: ValidationInfo
    ) -> Optional[str]:
        env = info.data.get("ENVIRONMENT") or "development"
        if env == "production" and v and v.startswith("sqlite"):
            raise ValueError(
                "DATABASE_URL must not point at SQLite in production. "
                "Configure DATABASE_URL or DB_HOST/DB_USER."
            )
        return v

    @property
    def cors_origins(self) -> List[str]:
        origins = list(self.ALLOWED_ORIGINS)
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        return origins

    @property
    def cors_allows_any_origin(self) -> bool:
        return self.CORS_ALLOW_ALL_ORIGINS or self.FRONTEND_URL == "*"


settings = Settings()
