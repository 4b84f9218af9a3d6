"""Configuration settings for the docsift extraction pipeline."""

import codecs
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseSettings):
    """Extraction pipeline settings."""

    model_config = SettingsConfigDict(
        env_prefix="DOCSIFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Format detection
    sniff_size: int = Field(
        default=8192,
        ge=512,
        le=1048576,
        description="Bytes of the input inspected for magic numbers",
    )
    hint_policy: str = Field(
        default="tiebreak",
        pattern="^(tiebreak|ignore)$",
        description=(
            "How declared name/content-type hints are used: 'tiebreak' lets a "
            "hint refine an ambiguous content match, 'ignore' disregards hints"
        ),
    )

    # Input buffering
    spool_max_memory_mb: int = Field(
        default=16,
        ge=1,
        le=1024,
        description="Non-seekable inputs larger than this spill to a temp file",
    )

    # Container handling
    extract_embedded: bool = Field(
        default=True,
        description="Recursively extract documents embedded in containers",
    )
    max_embedding_depth: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum nesting depth for embedded documents",
    )

    # Output
    output_encoding: str = Field(
        default="utf-8",
        description="Encoding used when writing text to the output sink",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level",
    )
    log_format: str = Field(
        default="console",
        pattern="^(console|json)$",
        description="Log renderer: console or json",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level."""
        return str(v).upper()

    @field_validator("output_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Reject encodings Python does not know."""
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e

    @property
    def spool_max_memory_bytes(self) -> int:
        return self.spool_max_memory_mb * 1024 * 1024


@lru_cache()
def get_settings() -> ExtractionSettings:
    """Get cached settings instance.

    Returns:
        ExtractionSettings instance
    """
    return ExtractionSettings()
