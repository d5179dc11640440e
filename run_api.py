"""Startup script for the Contract Archive API.

This script starts the FastAPI server with configuration from environment variables.
"""

import uvicorn
from loguru import logger

from archive.config import ArchiveSettings
from archive.logging_config import setup_logging
from api.security import get_tls_config


if __name__ == "__main__":
    settings = ArchiveSettings.from_env()
    # Console only here; the app factory installs the full sinks in the server process
    setup_logging(level=settings.log_level, to_files=False)

    logger.info(f"Starting Contract Archive API on {settings.api_host}:{settings.api_port}")
    logger.info(f"Database: {settings.db_path}")
    logger.info(f"CORS origins: {', '.join(settings.cors_origins)}")

    tls_config = get_tls_config(settings) or {}
    if tls_config:
        logger.info("TLS/SSL enabled")
    else:
        logger.warning("TLS not configured - use HTTPS in production")

    uvicorn.run(
        "api.main:create_app_from_env",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
        ssl_certfile=tls_config.get("certfile"),
        ssl_keyfile=tls_config.get("keyfile"),
    )
