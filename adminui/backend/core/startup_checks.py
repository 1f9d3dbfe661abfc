"""
Refuse to start with an unsafe configuration.

Each check returns the problems it found. Any problem stops the API and
the bot runner before they accept traffic. Missing SSH credentials are
not a problem here: operators can still log in, and every remote call
reports the failure itself.
"""

from pathlib import Path
from typing import Any

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)


class StartupSecurityError(RuntimeError):
    pass


def has_ssh_credentials() -> bool:
    """A readable key file, an inline private key, or a password is available for the managed host."""
    key_path = get_app_config().remote.key_path
    if key_path and Path(key_path).expanduser().is_file():
        return True
    settings = get_settings()
    return bool(settings.ssh_private_key or settings.ssh_password)


def secret_lengths(settings: Any, config: Any) -> list[str]:
    rules = config.security.secrets_validation
    problems = []
    if len(settings.jwt_secret) < rules.jwt_secret_min_length:
        problems.append(f"JWT_SECRET is {len(settings.jwt_secret)} chars, minimum is {rules.jwt_secret_min_length}")
    webhook_secret = settings.telegram_webhook_secret
    if webhook_secret and len(webhook_secret) < rules.webhook_secret_min_length:
        problems.append(
            f"TELEGRAM_WEBHOOK_SECRET is {len(webhook_secret)} chars, minimum is {rules.webhook_secret_min_length}"
        )
    return problems


def telegram_channel(settings: Any, config: Any) -> list[str]:
    if not config.features.channel_telegram_enabled:
        return []
    telegram = config.application.telegram
    problems = []
    if not settings.telegram_bot_token:
        problems.append("channel_telegram_enabled is true but TELEGRAM_BOT_TOKEN is empty")
    if telegram.mode == "webhook" and not settings.telegram_webhook_secret:
        problems.append("Telegram webhook mode requires TELEGRAM_WEBHOOK_SECRET")
    if not telegram.admin_ids:
        problems.append("channel_telegram_enabled is true but telegram.admin_ids is empty")
    return problems


def webauthn_outside_development(settings: Any, config: Any) -> list[str]:
    if config.features.webauthn_enabled and config.application.environment != "development":
        return ["webauthn_enabled is true outside development; WebAuthn assertions are not verified"]
    return []


def production_hardening(settings: Any, config: Any) -> list[str]:
    app = config.application
    if app.environment != "production":
        return []
    problems = []
    if app.debug:
        problems.append("debug is true in production environment")
    if app.docs_enabled:
        problems.append("docs_enabled is true in production environment")
    local_origins = [origin for origin in app.cors.origins if "localhost" in origin]
    if config.security.cors.enforce_in_production and local_origins:
        problems.append(f"CORS origins contain localhost in production: {local_origins}")
    return problems


CHECKS = (secret_lengths, telegram_channel, webauthn_outside_development, production_hardening)


def run_startup_checks() -> None:
    """
    Raises:
        StartupSecurityError: listing every problem found, one per line
    """
    config = get_app_config()
    settings = get_settings()

    problems = [problem for check in CHECKS for problem in check(settings, config)]
    for problem in problems:
        logger.error("Startup security check failed", extra={"check": problem})
    if problems:
        raise StartupSecurityError(
            f"Startup blocked: {len(problems)} security check(s) failed:\n"
            + "\n".join(f"  - {problem}" for problem in problems)
        )

    if not has_ssh_credentials():
        logger.warning("No SSH credentials configured for the managed host", extra={"host": config.remote.host})

    logger.info(
        "Startup security checks passed",
        extra={"environment": config.application.environment, "checks_run": len(CHECKS)},
    )
