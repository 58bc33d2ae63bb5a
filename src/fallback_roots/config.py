"""
Configuration — typed, validated settings for one generator run.

Uses pydantic-settings to:
  - Load from FALLBACK_ROOTS_* environment variables
  - Fall back to a .env file at the project root
  - Validate types and constraints before any I/O happens

Command-line flags (see main.py) are passed as init arguments and
therefore override both the environment and .env.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fallback_roots.domain.models import DuplicatePolicy

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

DEFAULT_CERTDATA_URL = (
    "https://hg.mozilla.org/mozilla-central/raw-file/tip/security/nss/lib/ckfw/builtins/certdata.txt"
)
DEFAULT_OUTPUT = "fallback/bundle.py"


class AppSettings(BaseSettings):
    """
    Settings for a single bundle generation.

    Load order (highest priority first):
      1. Init arguments (command-line flags)
      2. Environment variables (FALLBACK_ROOTS_OUTPUT, ...)
      3. .env file
      4. Default values

    `certdata_path` wins over `certdata_url` whenever it is non-empty. The URL
    is not checked here: one the HTTP client cannot request fails the run
    with NETWORK_ERROR.
    """

    model_config = SettingsConfigDict(
        env_prefix="FALLBACK_ROOTS_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    certdata_url: str = Field(
        default=DEFAULT_CERTDATA_URL,
        description="URL of the raw certdata.txt file (certdata_path overrides this)",
    )
    certdata_path: str = Field(
        default="",
        description="Path to a local certdata.txt file (overrides certdata_url)",
    )
    output: str = Field(default=DEFAULT_OUTPUT, min_length=1, description="Path to write the module to")
    duplicate_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.KEEP,
        description="keep: embed every record; collapse: drop records with identical DER",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="HTTP timeout; unset keeps the httpx default",
    )
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names, case-insensitively."""
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @property
    def uses_local_source(self) -> bool:
        return bool(self.certdata_path)
