"""Application entrypoint - aiohttp server relaying DeepSeek completions."""

import logging

import structlog
from aiohttp.web import Application, run_app

from deepseek_relay.config import Settings, get_settings
from deepseek_relay.relay.client import DeepSeekClient
from deepseek_relay.web.cors import cors_middleware
from deepseek_relay.web.routes import chat, chat_method_not_allowed, health
from deepseek_relay.web.static import StaticFiles


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Configure structlog and standard library logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. Empty string = console only.
        log_file_max_bytes: Max size per log file before rotation (default: 10 MB)
        log_file_backup_count: Number of rotated backup files to keep (default: 5)
    """
    from logging.handlers import RotatingFileHandler
    from pathlib import Path

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.root
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # JSON lines for the file, human-readable for the console
            structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


async def _close_client(app: Application) -> None:
    await app["deepseek_client"].close()


def create_app(
    settings: Settings | None = None,
    client: DeepSeekClient | None = None,
) -> Application:
    """Create and configure the aiohttp application."""
    settings = settings or get_settings()
    client = client or DeepSeekClient(settings)
    static_files = StaticFiles(settings.static_dir)

    app = Application(middlewares=[cors_middleware])
    app["settings"] = settings
    app["deepseek_client"] = client
    app["static_files"] = static_files

    app.router.add_post("/api/chat", chat)
    app.router.add_get("/api/chat", chat_method_not_allowed)
    app.router.add_get("/api/health", health)
    app.router.add_get("/{tail:.*}", static_files.handle)

    app.on_cleanup.append(_close_client)

    return app


def main() -> None:
    """Run the relay server."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )

    if not settings.api_key_loaded:
        logger.warning(
            "api_key_missing",
            hint="Set DEEPSEEK_API_KEY in the environment or .env; chat requests will fail with 500",
        )

    base_url = f"http://localhost:{settings.port}"
    logger.info(
        "starting_relay_server",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        frontend=base_url,
        chat_endpoint=f"{base_url}/api/chat",
        health_endpoint=f"{base_url}/api/health",
        static_dir=settings.static_dir,
    )

    app = create_app(settings)
    run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
