"""
Schemas for the YAML files under config/settings/.

One top-level model per file (ApplicationSchema is application.yaml,
RemoteSchema is remote.yaml, and so on). Unknown keys are rejected, so a
misspelt setting fails at startup rather than being silently ignored.
"""

from ipaddress import ip_network
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Port = Field(ge=1, le=65535)
PositiveSeconds = Field(gt=0)


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


# application.yaml


class ServerSchema(_Strict):
    host: str
    port: int = Port
    public_url: str


class CorsSchema(_Strict):
    origins: list[str]


class TimeoutsSchema(_Strict):
    # Seconds the CLI waits for the panel's own API
    external_api: int = PositiveSeconds


class TelegramAppSchema(_Strict):
    mode: str = Field(pattern="^(webhook|polling)$")
    webhook_path: str
    webhook_base_url: str
    admin_ids: list[int]


class ApplicationSchema(_Strict):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    timeouts: TimeoutsSchema
    telegram: TelegramAppSchema


# database.yaml


class DatabaseSchema(_Strict):
    path: str
    echo: bool


# logging.yaml


class ConsoleHandlerSchema(_Strict):
    enabled: bool


class FileHandlerSchema(_Strict):
    enabled: bool
    path: str
    max_bytes: int = Field(gt=0)
    backup_count: int = Field(ge=0)


class HandlersSchema(_Strict):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_Strict):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# features.yaml


class FeaturesSchema(_Strict):
    api_request_logging: bool
    channel_telegram_enabled: bool
    security_startup_checks_enabled: bool
    terminal_enabled: bool
    webauthn_enabled: bool


# security.yaml


class JwtSchema(_Strict):
    algorithm: str
    access_token_expire_minutes: int = Field(gt=0)
    audience: str


class ChallengesSchema(_Strict):
    prefix: str
    ssh_namespace: str
    ttl_seconds: int = PositiveSeconds
    operator_public_key_path: str | None = None


class TelegramCodesSchema(_Strict):
    ttl_seconds: int = PositiveSeconds
    length: int = Field(ge=4, le=16)


class WebAuthnSchema(_Strict):
    rp_id: str
    rp_name: str
    timeout_ms: int = Field(gt=0)


class ChannelRateLimitSchema(_Strict):
    messages_per_minute: int = Field(gt=0)
    messages_per_hour: int = Field(gt=0)


class RateLimitingSchema(_Strict):
    auth: ChannelRateLimitSchema
    telegram: ChannelRateLimitSchema


class SecretsValidationSchema(_Strict):
    jwt_secret_min_length: int
    webhook_secret_min_length: int


class CorsEnforcementSchema(_Strict):
    enforce_in_production: bool


class SecuritySchema(_Strict):
    jwt: JwtSchema
    challenges: ChallengesSchema
    telegram_codes: TelegramCodesSchema
    webauthn: WebAuthnSchema
    rate_limiting: RateLimitingSchema
    secrets_validation: SecretsValidationSchema
    cors: CorsEnforcementSchema
    trusted_proxies: list[str]

    @field_validator("trusted_proxies")
    @classmethod
    def _networks(cls, value: list[str]) -> list[str]:
        for entry in value:
            ip_network(entry, strict=False)
        return value


# remote.yaml


class RemoteSchema(_Strict):
    host: str
    port: int = Port
    username: str
    key_path: str | None = None
    known_hosts: str | None = None
    connect_timeout_seconds: int = PositiveSeconds
    keepalive_interval_seconds: int = Field(ge=0)
    command_timeout_seconds: int = PositiveSeconds
    terminal_timeout_seconds: int = PositiveSeconds
    use_sudo: bool
    authorized_keys_path: str
    allowed_services: list[str]
    script_directories: list[str]
    max_output_chars: int = Field(gt=0)
