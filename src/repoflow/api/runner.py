#!/usr/bin/env python3
"""Entry point: serve the repoflow API with uvicorn."""

import uvicorn
import structlog

from repoflow.api.app import create_app
from repoflow.config.loader import load_config
from repoflow.logging.setup import setup_logging

logger = structlog.get_logger("api.runner")


def main(config_path: str | None = None) -> None:
    """Load config, set up logging, run the FastAPI server."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)

    logger.info("api_server_starting", host=config.server.host, port=config.server.port)

    try:
        uvicorn.run(
            create_app(config),
            host=config.server.host,
            port=config.server.port,
            log_config=None  # Use our structlog setup
        )
    except Exception as e:
        logger.error("api_server_failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
