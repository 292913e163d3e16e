"""Entry point for the pre-install registration server.

Starts the FastAPI application with uvicorn.  Host, port and the rest
of the configuration come from environment variables (see
``preinstall_api.app.core.config``).

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from preinstall_api.app.core.config import settings
from preinstall_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    # log_config=None keeps uvicorn from replacing the handlers set up in create_app.
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = Server(config)
    logging.getLogger(__name__).info("Form API listening on http://%s:%s", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
