#!/usr/bin/env python3
"""
Main entry point for the TinyURL service.

The server starts accepting requests immediately. Until the primary
PostgreSQL store is connected (and whenever it drops out later) requests
are served from the fallback snapshot file.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - PostgreSQL connection URL for the primary store
    DATABASE_CREATE_TABLES - Set to true to create tables on connect
    FALLBACK_DATA_FILE - Snapshot file for the fallback store
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    LOG_LEVEL - Logging level
"""

import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from tinyurl.bootstrap import build_services
from tinyurl.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting TinyURL service...")

    bundle = build_services(config, logger=logger)
    await bundle.start(wait_for_primary=False)

    app.state.service = bundle.service
    app.state.resolver = bundle.resolver

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down TinyURL service...")
    await bundle.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("TinyURL Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    app = create_app(
        service_instance=None,  # Set in lifespan
        resolver_instance=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
