"""
The panel's FastAPI application.

``python run.py --action server`` serves it; so does
``uvicorn adminui.backend.main:app``, through the module ``__getattr__``
at the bottom.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adminui.backend.api import health
from adminui.backend.api.endpoints import router as api_router
from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.database import dispose_engine, init_db
from adminui.backend.core.exception_handlers import register_exception_handlers
from adminui.backend.core.logging import get_logger, setup_logging
from adminui.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


def telegram_uses_webhook() -> bool:
    config = get_app_config()
    return config.features.channel_telegram_enabled and config.application.telegram.mode == "webhook"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging, safety checks, schema, webhook registration. Shutdown undoes the last two."""
    config = get_app_config()
    setup_logging(level=config.logging.level)

    if config.features.security_startup_checks_enabled:
        from adminui.backend.core.startup_checks import run_startup_checks

        run_startup_checks()

    await init_db()

    bot = None
    if telegram_uses_webhook():
        from adminui.telegram.bot import get_bot, setup_webhook
        from adminui.telegram.webhook import get_webhook_url

        bot = get_bot()
        await setup_webhook(bot, get_webhook_url(), get_settings().telegram_webhook_secret)

    logger.info(
        "Admin panel started",
        extra={
            "app_name": config.application.name,
            "env": config.application.environment,
            "remote_host": config.remote.host,
        },
    )
    try:
        yield
    finally:
        if bot is not None:
            from adminui.telegram.bot import cleanup_bot

            await cleanup_bot(bot)
        await dispose_engine()
        logger.info("Admin panel stopped")


def create_app() -> FastAPI:
    settings = get_app_config().application
    docs = settings.docs_enabled

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_router, prefix=settings.api_prefix)

    if telegram_uses_webhook():
        from adminui.telegram.bot import get_bot, get_dispatcher
        from adminui.telegram.webhook import get_webhook_router

        app.include_router(get_webhook_router(get_bot(), get_dispatcher()))
        logger.info("Telegram webhook route mounted")

    return app


def get_app() -> FastAPI:
    """The process-wide app, built on first access so imports never read config."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
