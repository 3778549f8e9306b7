"""
Configuration management for the Build Librarian.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Filesystem Configuration
    input_dir: Path = Path("./uploads")
    storage_dir: Path = Path("./storage")

    # Neo4j Configuration
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "librarian"
    neo4j_database: Optional[str] = None

    # Runtime Configuration
    environment: str = "development"
    log_level: str = "INFO"

    # Upload Conventions
    build_channel: str = "DEFAULT"
    descriptor_filename: str = "metadata.json"
    artifact_extensions: str = ".jar"
    reserved_dirs: str = "repo"

    # Descriptor Reader Configuration
    read_interval: float = 1.0  # seconds
    read_timeout: float = 300.0  # seconds

    # Worker Configuration
    ingest_workers: int = 4

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def get_artifact_extensions(self) -> list[str]:
        """Parse artifact extensions into lowercase suffixes with a leading dot."""
        extensions = []
        for ext in self.artifact_extensions.split(','):
            ext = ext.strip().lower()
            if ext:
                extensions.append(ext if ext.startswith('.') else f".{ext}")
        return extensions

    def get_reserved_dirs(self) -> list[str]:
        """Parse reserved bookkeeping directory names into list."""
        return [d.strip() for d in self.reserved_dirs.split(',') if d.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
