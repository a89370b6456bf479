"""Configuration for the TalentTrek API, read from the environment."""

from dataclasses import dataclass, field
from typing import List
import os

from dotenv import load_dotenv

# Load .env file
load_dotenv()


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def _env(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default))


def _env_number(name: str, default: str, cast=int):
    def read():
        raw = os.getenv(name, default)
        try:
            return cast(raw)
        except ValueError:
            raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    return field(default_factory=read)


@dataclass
class Config:
    """
    Application settings. Defaults are read from environment variables each
    time a Config is created; a non-numeric value raises ConfigError.
    """
    # Auth
    jwt_secret: str = _env("JWT_SECRET", "")
    jwt_expiry_days: int = _env_number("JWT_EXPIRY_DAYS", "1")

    # Storage
    database_path: str = _env("DATABASE_PATH", "talenttrek.db")
    upload_folder: str = _env("UPLOAD_FOLDER", "uploads")
    max_upload_mb: int = _env_number("MAX_UPLOAD_MB", "5")

    # Recommendations
    min_match_score: float = _env_number("MIN_MATCH_SCORE", "0.1", float)
    max_recommendations: int = _env_number("MAX_RECOMMENDATIONS", "10")

    # Server
    environment: str = _env("ENVIRONMENT", "development")
    host: str = _env("HOST", "127.0.0.1")
    port: int = _env_number("PORT", "5000")
    cors_origins: List[str] = field(
        default_factory=lambda: _split_origins(
            os.getenv("CORS_ORIGINS", "http://localhost:5174,https://talenttrek-api.vercel.app")
        )
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def validate(self) -> None:
        """Raise ConfigError if a required setting is missing."""
        missing = []
        if not self.jwt_secret:
            missing.append("JWT_SECRET")
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
        if not 0 <= self.min_match_score <= 1:
            raise ConfigError("MIN_MATCH_SCORE must be between 0 and 1")
        if self.max_recommendations < 0:
            raise ConfigError("MAX_RECOMMENDATIONS must not be negative")
