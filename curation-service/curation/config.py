"""
Application configuration management using Pydantic Settings.
Values come from the environment (prefix CURATION_) or a local .env file.
"""
import logging
from typing import Literal, Optional, Dict, List
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from dotenv import load_dotenv

# Load .env first
load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Place curation service settings"""

    # -------------------------
    # APPLICATION METADATA & RUNTIME
    # -------------------------
    app_name: str = "Place Curation Service"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_directory: str = "logs"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # -------------------------
    # STORAGE
    # -------------------------
    storage_backend: Literal["filesystem", "postgres"] = "filesystem"
    storage_path: str = "./place_states"
    backup_enabled: bool = True
    backup_storage_path: str = "./place_states_backup"

    # -------------------------
    # POSTGRESQL
    # -------------------------
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "places"
    postgres_user: str = "curation"
    postgres_password: str = "devpass"
    postgres_min_connections: int = 1
    postgres_max_connections: int = 10
    postgres_command_timeout: int = 30

    @property
    def database_url(self) -> str:
        return f"postgresql://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # -------------------------
    # RESOLUTION POLICY
    # -------------------------
    list_field_paths: List[str] = ["tags"]
    append_note_field_paths: List[str] = ["expert_tip_final"]
    note_date_format: str = "%Y-%m-%d"

    # Raise instead of logging when a resolve targets a missing or
    # already-resolved suggestion.
    strict_resolution: bool = False

    # -------------------------
    # VALIDATORS
    # -------------------------
    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return str(v).upper()

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ["development", "staging", "production"]
        if v not in valid_envs:
            logger.warning(f"Invalid environment '{v}', defaulting to 'development'")
            return "development"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def policy_config(self) -> Dict[str, List[str]]:
        return {
            "list_field_paths": self.list_field_paths,
            "append_note_field_paths": self.append_note_field_paths,
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="CURATION_",
        validate_default=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    logger.info("Initializing settings...")
    return Settings()


settings = get_settings()
