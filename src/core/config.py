"""TwinLint settings.

Values come from environment variables (case-insensitive) or a local
``.env`` file. The definition directory defaults to the documents shipped
inside ``src/intellisense/definitions``.
"""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "intellisense" / "definitions"
_DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Runtime configuration shared by the API and the ``twinlint-check`` CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    app_name: str = "TwinLint"
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ── Model definitions ────────────────────────────────────────
    definitions_path: str = ""
    context_file_name: str = "context.json"
    constraint_file_name: str = "constraint.json"
    graph_file_name: str = "graph.json"

    # ── HTTP server ──────────────────────────────────────────────
    backend_host: str = "0.0.0.0"  # noqa: S104  # nosec B104
    backend_port: int = 8000
    cors_origins: list[str] = _DEFAULT_CORS_ORIGINS

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Accept a list, a JSON array string, or a comma-separated string."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, list):
            return [str(item) for item in v]
        return list(_DEFAULT_CORS_ORIGINS)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def resolve_definitions_path(self) -> Settings:
        """Fall back to the definitions shipped with the package."""
        if not self.definitions_path:
            self.definitions_path = str(_DEFAULT_DEFINITIONS_DIR)
        return self


@functools.lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once."""
    return Settings()
