"""
Entry point for the bundle service.
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from .application.domain import HealthScope
from .infrastructure.containers import Container
from .infrastructure.http_api import create_app

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


async def run_application(args: argparse.Namespace):
    """Wires the application using the DI container and serves it."""

    container = Container()
    config = container.config()
    setup_logging(level=config.logging.level)

    if not args.skip_connection_check:
        status = await container.health_probe().check(HealthScope.ALL)
        if not status.healthy:
            logger.error(f"Failed to connect to external services: {status.message}")
            sys.exit(1)
        logger.info("Successfully connected to all external services")

    app = create_app(container, chunk_size=config.upload.chunk_size)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=args.host or config.server.host,
            port=args.port or config.server.port,
            log_level=config.logging.level.lower(),
        )
    )
    await server.serve()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Bundle ingestion and retrieval service")

    parser.add_argument("--host", help="Interface to bind, overrides server.host.")

    parser.add_argument(
        "--port", type=int, help="Port to listen on, overrides server.port."
    )

    parser.add_argument(
        "--skip-connection-check",
        action="store_true",
        help="Start without probing the object store, database and cache."
    )

    cli_args = parser.parse_args()

    asyncio.run(run_application(cli_args))
