"""
Configuration Management.

Two sources, both under config/:

    .env               secrets only: JWT_SECRET, TELEGRAM_BOT_TOKEN,
                       TELEGRAM_WEBHOOK_SECRET, SSH_PASSWORD, SSH_PRIVATE_KEY,
                       SSH_KEY_PASSPHRASE, SSH_PUBLIC_KEY
    settings/*.yaml    everything else, one file per section (see SECTIONS)

Each YAML file is validated by its strict schema in config_schema.py when
AppConfig is built, so a typo in remote.yaml stops the process at startup
instead of surfacing as an AttributeError in the middle of a request.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from adminui.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    RemoteSchema,
    SecuritySchema,
)

MARKER_FILE = ".project_root"

# Attribute name on AppConfig -> (schema, file under config/settings/)
SECTIONS: dict[str, tuple[type[BaseModel], str]] = {
    "application": (ApplicationSchema, "application.yaml"),
    "database": (DatabaseSchema, "database.yaml"),
    "logging": (LoggingSchema, "logging.yaml"),
    "features": (FeaturesSchema, "features.yaml"),
    "security": (SecuritySchema, "security.yaml"),
    "remote": (RemoteSchema, "remote.yaml"),
}


def find_project_root() -> Path:
    """Walk up from the working directory to the directory holding .project_root."""
    for directory in (Path.cwd(), *Path.cwd().parents):
        if (directory / MARKER_FILE).exists():
            return directory
    raise RuntimeError(f"Project root not found. Ensure {MARKER_FILE} file exists.")


def validate_project_root() -> Path:
    """find_project_root() for entry scripts: exits with the message instead of raising."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Raw mapping from config/settings/<filename>; an empty file gives {}."""
    config_path = find_project_root() / "config" / "settings" / filename
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    jwt_secret: str
    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""
    ssh_password: str = ""
    ssh_private_key: str = ""
    ssh_key_passphrase: str = ""
    ssh_public_key: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig:
    """
    Validated YAML settings, one typed attribute per file.

    Raises:
        FileNotFoundError: A settings file is missing
        ValueError: A settings file does not match its schema
    """

    application: ApplicationSchema
    database: DatabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    security: SecuritySchema
    remote: RemoteSchema

    def __init__(self) -> None:
        for attribute, (schema, filename) in SECTIONS.items():
            raw = load_yaml_config(filename)
            try:
                section = schema(**raw)
            except ValidationError as e:
                raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e
            setattr(self, attribute, section)


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=str(find_project_root() / "config" / ".env"))


@lru_cache
def get_app_config() -> AppConfig:
    return AppConfig()


def get_database_url() -> str:
    """
    aiosqlite URL for database.path.

    A relative path is taken from the project root; the parent directory
    is created so a fresh checkout starts without manual setup.
    """
    db_path = Path(get_app_config().database.path)
    if not db_path.is_absolute():
        db_path = find_project_root() / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{db_path}"


def get_server_base_url() -> tuple[str, float]:
    """Local API address and HTTP timeout, for run.py probing a running server."""
    app = get_app_config().application
    return f"http://{app.server.host}:{app.server.port}", float(app.timeouts.external_api)
