"""
Settings for the IT asset tracker, read from the environment or .env
"""
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bootstrap password shipped for local setups; refused in production
DEV_BOOTSTRAP_PASSWORD = "Admin@12345"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DATABASE_URL: str = Field(..., description="SQLAlchemy URL of the asset register (PostgreSQL or SQLite)")
    JWT_SECRET_KEY: str = Field(..., description="HS256 signing key for bearer tokens")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = Field(default=120, ge=1)

    APP_ENV: Literal["local", "staging", "prod"] = "local"
    LOG_LEVEL: str = "INFO"

    # Comma-separated; "*" is accepted outside prod only
    ALLOWED_ORIGINS: str = "*"

    # Git SHA or semver reported by /version
    VERSION: Optional[str] = None

    # First admin account, created at startup while user_roles holds no admin
    INITIAL_ADMIN_EMAIL: str = Field(
        default="itam-admin@example.com",
        description="Login of the bootstrap admin account",
    )
    INITIAL_ADMIN_PASSWORD: str = Field(
        default=DEV_BOOTSTRAP_PASSWORD,
        description="Password of the bootstrap admin account",
    )

    # Straight-line depreciation when an asset has no useful_life_years of its own
    DEFAULT_USEFUL_LIFE_YEARS: int = Field(default=4, ge=1)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL {v!r}")
        return level

    def validate_production(self) -> None:
        """
        Refuse settings that are only tolerable on a developer machine

        Raises:
            ValueError: weak signing key, wildcard CORS or the shipped
                bootstrap admin password in prod
        """
        if self.APP_ENV != "prod":
            return
        if len(self.JWT_SECRET_KEY) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters in prod")
        if not self.ALLOWED_ORIGINS or self.ALLOWED_ORIGINS == "*":
            raise ValueError("ALLOWED_ORIGINS must list explicit origins in prod")
        if self.INITIAL_ADMIN_PASSWORD == DEV_BOOTSTRAP_PASSWORD:
            raise ValueError("INITIAL_ADMIN_PASSWORD must be changed from the shipped default in prod")

    def get_allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
settings.validate_production()
