"""Runner configuration.

Values come from ``CMDRUN_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cmdrun.process.errors import DEFAULT_EXCERPT_CHARS


class RunnerSettings(BaseSettings):
    """Settings shared by the runner and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="CMDRUN_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Logging level applied by the CLI (library code never configures handlers).
    log_level: str = "WARNING"

    # Tail of stderr embedded in ProcessFailure messages; 0 disables it.
    error_excerpt_chars: int = Field(default=DEFAULT_EXCERPT_CHARS, ge=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_env_string(cls, value: Any) -> Any:
        """Normalizes env var strings.

        Docker's `--env-file` does not strip quotes, so we trim whitespace and
        strip a single pair of surrounding quotes.
        """

        if value is None or not isinstance(value, str):
            return value
        text = value.strip()
        if len(text) >= 2 and ((text[0] == text[-1] == '"') or (text[0] == text[-1] == "'")):
            text = text[1:-1].strip()
        return text.upper() or "WARNING"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level: {value}")
        return value
