"""
Configuration module - settings from environment variables and .env file.
"""
import json
import logging
from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings."""

    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # CORS
    allowed_origins: Annotated[List[str], NoDecode] = Field(default=[], alias="ALLOWED_ORIGINS")

    # Stamping defaults (PDF points)
    default_stamp_width: float = Field(
        default=150.0,
        gt=0,
        alias="DEFAULT_STAMP_WIDTH",
        description="Fixed stamp width used when a request carries no stamp config",
    )
    default_stamp_height: float = Field(
        default=75.0,
        gt=0,
        alias="DEFAULT_STAMP_HEIGHT",
        description="Fixed stamp height used when a request carries no stamp config",
    )
    dimension_tolerance: float = Field(
        default=1.0,
        ge=0,
        alias="DIMENSION_TOLERANCE",
        description="Allowed mapping/merge page size drift in points",
    )

    # Limits
    page_cache_size: int = Field(default=32, ge=1, alias="PAGE_CACHE_SIZE")
    max_pdf_bytes: int = Field(default=25 * 1024 * 1024, gt=0, alias="MAX_PDF_BYTES")

    @field_validator("allowed_origins", mode='before')
    @classmethod
    def _parse_allowed_origins(cls, v: Any) -> List[str]:
        """Parse ALLOWED_ORIGINS from JSON list, CSV, semicolon-separated string, or list."""
        if v is None:
            return []
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            # Try JSON list first (e.g., '["https://example.com", "https://other.com"]')
            if s.startswith("["):
                try:
                    return json.loads(s)
                except json.JSONDecodeError:
                    pass  # Fall through to delimiter parsing
            # Semicolon is useful in Cloud Build where comma separates env vars
            parts = [p.strip() for p in s.replace(",", ";").split(";")]
            return [p for p in parts if p]
        return []

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Warn about risky configuration in production."""
        if self.environment == "production":
            if "*" in self.allowed_origins:
                logger.warning(
                    "Configuration Warning: ALLOWED_ORIGINS contains '*' in production."
                )
            if self.debug:
                logger.warning("Configuration Warning: DEBUG is enabled in production.")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
