"""
Configuration module for the Vet Clinic Record Service.
Uses Pydantic BaseSettings for validation - app fails fast if config is invalid
(for example an unknown storage backend).
"""
import logging
from pathlib import Path
from typing import List, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

BACKEND_RELATIONAL = "relational"
BACKEND_DOCUMENT = "document"


class Settings(BaseSettings):
    """
    Application settings with validation.

    The active storage backend is chosen once, at process start, from
    ``VET_SVC_BACKEND``. Only the connection settings of the active backend
    are used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage backend selection
    vet_svc_backend: Literal["relational", "document"] = Field(
        default=BACKEND_RELATIONAL,
        description="Active storage backend: 'relational' (SQLite) or 'document' (MongoDB)",
    )

    # Relational (SQLite) configuration
    vet_svc_db_dir: str = Field(default="data", description="Database directory")
    vet_svc_db_file: str = Field(default="vet_clinic.db", description="Database filename")
    vet_svc_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # Document (MongoDB) configuration
    vet_svc_mongo_uri: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URI")
    vet_svc_mongo_db: str = Field(default="vet_clinic", description="MongoDB database name")
    vet_svc_mongo_timeout_ms: int = Field(
        default=5000,
        ge=1,
        description="MongoDB server selection timeout in milliseconds",
    )

    # API Configuration
    vet_svc_host: str = Field(default="0.0.0.0", description="API host")
    vet_svc_port: int = Field(default=3002, description="API port")
    vet_svc_reload: bool = Field(default=False, description="Enable hot reload")
    vet_svc_cors_origins: str = Field(default="*", description="Allowed CORS origins (comma-separated)")

    # Login gate (hard-coded credential check, not a security mechanism)
    vet_svc_login_username: str = Field(default="admin", description="Login username")
    vet_svc_login_password: str = Field(default="admin123", description="Login password")

    @model_validator(mode="after")
    def warn_on_defaults(self) -> "Settings":
        """Log configuration that is valid but probably unintended."""
        if self.vet_svc_login_password == "admin123":
            logger.warning(
                "VET_SVC_LOGIN_PASSWORD is using the default value - change it outside local development"
            )
        return self

    @property
    def backend(self) -> str:
        """Get the active storage backend name."""
        return self.vet_svc_backend

    @property
    def database_path(self) -> str:
        """Get the full SQLite database path."""
        return str(Path(self.vet_svc_db_dir) / self.vet_svc_db_file)

    @property
    def cors_origins_list(self) -> List[str]:
        """Get the allowed CORS origins as a list."""
        return [o.strip() for o in self.vet_svc_cors_origins.split(",") if o.strip()]

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        if self.backend == BACKEND_RELATIONAL:
            Path(self.vet_svc_db_dir).mkdir(parents=True, exist_ok=True)


# Create global settings instance - fails fast if config is invalid
settings = Settings()

# Ensure directories exist on import
settings.ensure_directories()

# Backwards-compatible exports for existing code
DATABASE_PATH = settings.database_path

API_HOST = settings.vet_svc_host
API_PORT = settings.vet_svc_port
API_RELOAD = settings.vet_svc_reload
