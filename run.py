"""Entry point for the Leave Lookup API.

This script serves the FastAPI application with Uvicorn.  It is intended
to be executed from the project root, for example under Docker or a
process manager, where you only specify a single Python file to run.

Configuration is read from environment variables (see
``leave_lookup_api/app/core/config.py``).  ``HOST`` and ``PORT`` select
the listening address; defaults are ``0.0.0.0`` and ``3000``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from leave_lookup_api.app.core.config import settings
from leave_lookup_api.app.main import app


logger = logging.getLogger(__name__)


async def main() -> None:
    """Run the API server until it is stopped."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        # X-Forwarded-For is resolved by the app itself (TRUSTED_PROXY_HOPS).
        proxy_headers=False,
    )
    server = Server(config)
    logger.info("Server running on port %s", settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
