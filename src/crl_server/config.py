"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to a .env file
  - Validate types at startup

Designed for Kubernetes: the CA credentials come from a mounted Secret, the
registry from a ConfigMap, and the artifact directory from a writable volume.
Paths are relative to the working directory unless absolute.

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so TLS__CERT_FILE maps to
tls.cert_file, CACHE__DIRECTORY to cache.directory, etc.

The one-hour freshness window is deliberately not configurable.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env file relative to the project root (two levels above this file).
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class TlsSettings(BaseModel):
    """CA certificate and signing key, both PEM encoded."""

    cert_file: Path = Field(default=Path("tls/tls.crt"), description="CA certificate (PEM)")
    key_file: Path = Field(
        default=Path("tls/tls.key"),
        description="CA private key (PEM: PKCS#8, PKCS#1 RSA or SEC1 EC)",
    )


class RegistrySettings(BaseModel):
    """Operator-maintained revocation list (HEXSERIAL:EPOCH:REASON per line)."""

    path: Path = Field(default=Path("conf/list.txt"), description="Revocation registry file")


class CacheSettings(BaseModel):
    """Durable store for generated CRLs."""

    directory: Path = Field(default=Path("temp"), description="Artifact directory")


class ServerSettings(BaseModel):
    host: str = Field(default="0.0.0.0", description="Listen address")  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    tls: TlsSettings = Field(default_factory=TlsSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept any case, store upper case, reject unknown levels."""
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return level
