#!/usr/bin/env python3
"""
AdminUI launcher.

Usage:
    python run.py --action server --reload -v
    python run.py --action bot
    python run.py --action health
    python run.py --action config
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click

from adminui.backend.core.logging import get_logger, setup_logging

PROJECT_ROOT = Path(__file__).parent

CheckResult = tuple[str, bool, str | None]

ACTION_HELP = {
    "server": "Start the API server",
    "bot": "Run the Telegram bot (long polling)",
    "health": "Check configuration, database and server",
    "config": "Display configuration",
    "info": "Show this information",
}


def validate_project_root() -> Path:
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(click.style("Error: .project_root not found. Run from project root.", fg="red"), err=True)
        sys.exit(1)
    return PROJECT_ROOT


def warn(message: str) -> None:
    click.echo(click.style(f"Warning: {message}", fg="yellow"), err=True)


@click.command()
@click.option("--action", type=click.Choice(list(ACTION_HELP)), default="info", help="Action to perform.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Bind address (server action).")
@click.option("--port", default=None, type=int, help="Bind port (server action).")
@click.option("--reload", is_flag=True, help="Restart on code changes (server action).")
def main(action: str, verbose: bool, debug: bool, host: str | None, port: int | None, reload: bool) -> None:
    """
    Admin panel entry point.

    Serve the panel API, run the Telegram bot, or inspect the
    configuration and the health of a deployment.

    Examples:

        python run.py --action server --reload --verbose

        python run.py --action bot --verbose

        python run.py --action health
    """
    validate_project_root()

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    logger = get_logger(__name__)
    logger.debug("run.py invoked", extra={"action": action, "log_level": log_level})

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "bot":
        run_bot(logger)
    elif action == "health":
        check_health(logger)
    elif action == "config":
        show_config(logger)
    else:
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """uvicorn in a child process, so --reload can restart it."""
    from adminui.backend.core.config import get_app_config

    configured = get_app_config().application.server
    host = host or configured.host
    port = port or configured.port

    cmd = [sys.executable, "-m", "uvicorn", "adminui.backend.main:app", "--host", host, "--port", str(port)]
    if reload:
        cmd.append("--reload")

    logger.info("Starting server", extra={"host": host, "port": port, "reload": reload})
    click.echo(f"Admin panel at http://{host}:{port}  (Ctrl+C to stop)\n")
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as exc:
        logger.error("Server exited with an error", extra={"exit_code": exc.returncode})
        sys.exit(exc.returncode)


def run_bot(logger) -> None:
    from adminui.backend.core.config import get_app_config, get_settings
    from adminui.backend.core.database import dispose_engine, init_db
    from adminui.telegram.bot import run_polling

    if not get_settings().telegram_bot_token:
        click.echo(click.style("TELEGRAM_BOT_TOKEN is not set in config/.env", fg="red"), err=True)
        sys.exit(1)

    telegram = get_app_config().application.telegram
    if not telegram.admin_ids:
        warn("application.telegram.admin_ids is empty; every update will be ignored")
    if telegram.mode == "webhook":
        warn("telegram.mode is webhook; polling removes the registered webhook")

    async def polling() -> None:
        await init_db()
        try:
            await run_polling()
        finally:
            await dispose_engine()

    click.echo("Telegram bot polling  (Ctrl+C to stop)\n")
    try:
        asyncio.run(polling())
    except KeyboardInterrupt:
        logger.info("Bot stopped")


def check_health(logger) -> None:
    """Offline checks first; a broken configuration stops the rest."""
    from adminui.backend.core.config import get_app_config, get_settings

    click.echo("Checking application health...\n")
    results: list[CheckResult] = []

    try:
        config = get_app_config()
    except Exception as exc:
        logger.error("Configuration failed", extra={"error": str(exc)})
        print_checks([("YAML configuration", False, str(exc))])
        return
    results.append(("YAML configuration", True, f"App: {config.application.name}"))

    try:
        get_settings()
    except Exception as exc:
        logger.error("Environment settings failed", extra={"error": str(exc)})
        results.append(("Environment settings", False, str(exc)))
    else:
        results.append(("Environment settings", True, None))

    results.append(_check_ssh_credentials(config))
    results.append(_check_database(config))
    results.append(_check_running_server(logger))

    print_checks(results)


def _check_ssh_credentials(config) -> CheckResult:
    from adminui.backend.core.startup_checks import has_ssh_credentials

    if has_ssh_credentials():
        return ("SSH credentials", True, f"Host: {config.remote.host}")
    return ("SSH credentials", False, "none of key_path, SSH_PRIVATE_KEY, SSH_PASSWORD is set")


def _check_database(config) -> CheckResult:
    from adminui.backend.api import health

    outcome = asyncio.run(health.check_database())
    return ("Database", outcome["status"] == "healthy", outcome.get("error") or config.database.path)


def _check_running_server(logger) -> CheckResult:
    import httpx

    from adminui.backend.core.config import get_server_base_url

    base_url, timeout = get_server_base_url()
    try:
        response = httpx.get(f"{base_url}/health/ready", timeout=timeout)
    except httpx.HTTPError as exc:
        logger.debug("Server not reachable", extra={"error": str(exc)})
        return ("Running server", False, f"{base_url} not reachable")
    return ("Running server", response.status_code == 200, f"{base_url} -> {response.status_code}")


def print_checks(results: list[CheckResult]) -> None:
    rule = "-" * 50
    click.echo("Health Check Results:")
    click.echo(rule)
    for name, passed, detail in results:
        mark = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        click.echo(f"  {mark}  {name}" + (f" ({detail})" if detail else ""))
    click.echo(rule)

    if all(passed for _, passed, _ in results):
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))


def show_config(logger) -> None:
    """Print every YAML section. Secrets live in config/.env and are not shown."""
    from adminui.backend.core.config import get_app_config

    try:
        config = get_app_config()
    except Exception as exc:
        logger.error("Failed to load configuration", extra={"error": str(exc)})
        click.echo(click.style(f"Error loading configuration: {exc}", fg="red"))
        sys.exit(1)

    sections = [
        ("Application", config.application),
        ("Database", config.database),
        ("Logging", config.logging),
        ("Feature Flags", config.features),
        ("Security", config.security),
        ("Remote Host", config.remote),
    ]
    click.echo("Application Configuration:\n")
    for title, section in sections:
        click.echo(f"{title} (from YAML):")
        click.echo("-" * 40)
        _echo_tree(section.model_dump(), depth=1)
        click.echo()


def _echo_tree(values: dict, depth: int) -> None:
    pad = "  " * depth
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{pad}{key}:")
            _echo_tree(value, depth + 1)
        else:
            click.echo(f"{pad}{key}: {value}")


def show_info(logger) -> None:
    from adminui.backend.core.config import get_app_config

    app = get_app_config().application
    click.echo(f"{app.name} {app.version}")
    click.echo("=" * 40)
    click.echo(f"Description: {app.description}")
    click.echo(f"Environment: {app.environment}\n")

    click.echo("Available Actions:")
    for name, text in ACTION_HELP.items():
        click.echo(f"  --action {name:<8} {text}")
    click.echo("\nLogging Options:")
    click.echo("  --verbose, -v     Enable INFO level logging")
    click.echo("  --debug, -d       Enable DEBUG level logging")


if __name__ == "__main__":
    main()
