"""
Centralized Logging Configuration.

Every module logs through structlog as configured here, from
config/settings/logging.yaml. One JSON record per line goes to
logs/system.jsonl; the console gets either the same JSON or a coloured
developer view.

Fields in each record: timestamp, level, logger, event, func_name,
lineno, plus whatever the caller binds. HTTP requests add request_id,
frontend, method and path (see middleware.py). Bot, CLI and remote code
set ``source`` explicitly with log_with_source().

Values of secret-looking keys (password, token, private_key, signature,
code) are masked before rendering, so an SSH password or a login code
never reaches the log file.

Usage:
    from adminui.backend.core.logging import get_logger, log_with_source

    logger = get_logger(__name__)
    logger.info("Remote command finished", extra={"exit_status": 0})
    log_with_source(logger, "telegram", "info", "Update received", chat_id=123)
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from adminui.backend.core.config import find_project_root, load_yaml_config

VALID_SOURCES = frozenset({"web", "cli", "telegram", "api", "remote", "internal", "unknown"})

REDACTED = "***"
SECRET_KEYS = frozenset({
    "password",
    "ssh_password",
    "passphrase",
    "private_key",
    "ssh_private_key",
    "token",
    "jwt_secret",
    "secret",
    "signature",
    "code",
})

# Libraries that log every request, connection or update at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncssh", "aiogram.event")

_logging_config: dict[str, Any] | None = None


def _get_logging_config() -> dict[str, Any]:
    global _logging_config
    if _logging_config is None:
        _logging_config = load_yaml_config("logging.yaml")
    return _logging_config


def _resolve_log_path(configured_path: str) -> Path:
    return find_project_root() / configured_path


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """structlog processor masking secret values, including inside ``extra``."""
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    extra = event_dict.get("extra")
    if isinstance(extra, dict) and extra.keys() & SECRET_KEYS:
        event_dict["extra"] = {
            k: REDACTED if k in SECRET_KEYS and v else v for k, v in extra.items()
        }
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        redact_secrets,
    ]


def _file_handler(file_config: dict[str, Any], formatter: logging.Formatter) -> logging.Handler:
    log_path = _resolve_log_path(file_config["path"])
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config["max_bytes"],
        backupCount=file_config["backup_count"],
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Arguments left as None fall back to logging.yaml.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: Console output, 'json' or 'console'
        enable_console: Write to stdout
        enable_file_logging: Write JSON lines to handlers.file.path
    """
    config = _get_logging_config()
    handlers = config["handlers"]

    level = level if level is not None else config["level"]
    format_type = format_type if format_type is not None else config["format"]
    if enable_console is None:
        enable_console = handlers["console"]["enabled"]
    if enable_file_logging is None:
        enable_file_logging = handlers["file"]["enabled"]

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=processors,
    )
    console_formatter = json_formatter
    if format_type == "console":
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=processors,
        )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(console_formatter)
        root.addHandler(console)
    if enable_file_logging:
        root.addHandler(_file_handler(handlers["file"], json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log with an explicit ``source`` field.

    For code running outside an HTTP request: bot handlers, the SSH
    executor, run.py.

    Raises:
        AttributeError: If level is not a logger method
    """
    getattr(logger, level.lower())(message, source=source, **kwargs)
