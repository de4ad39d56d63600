"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    """Read an environment variable, falling back to ``default``."""
    return os.environ.get(key, default)


@dataclass(frozen=True)
class CosmosConfig:
    """Cosmos DB connection settings for the document store."""

    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "studio"))
    container: str = field(
        default_factory=lambda: _env("COSMOS_CONTAINER", "documents")
    )


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings for the web app and CLI."""

    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    session_retention: int = field(
        default_factory=lambda: int(_env("SESSION_RETENTION", "200"))
    )

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class Settings:
    """Top-level settings composed of all sub-configs."""

    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    app: AppConfig = field(default_factory=AppConfig)


def load_settings() -> Settings:
    """Load ``.env`` (if present) and build settings from the environment."""
    load_dotenv()
    return Settings()
