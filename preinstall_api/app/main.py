"""
Main entrypoint for the Pre-Install Registration API.

``create_app`` assembles the FastAPI application: logging, CORS, JSON
error rendering and the ``/api`` routes.  The SQLite store is opened in
the application lifespan and closed on shutdown; failure to open it
aborts startup.  The module-level ``app`` can be served directly::

    uvicorn preinstall_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import SubmissionStore
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path"))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the environment-derived defaults.
        Tests pass an instance pointing at a temporary database.
    """
    app_settings = app_settings or default_settings
    setup_logging(app_settings.log_level, app_settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = SubmissionStore(app_settings.database_url)
        store.open()
        app.state.store = store
        logger.info("%s %s ready, uploads in %s", app.title, app.version, app_settings.upload_dir)
        try:
            yield
        finally:
            store.close()

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # The dashboard reads ``error`` from every failed response.
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _format_validation_error(exc)},
        )

    app.include_router(api_router, prefix="/api")
    return app


# Created at import time so uvicorn can discover it without calling
# create_app manually.
app = create_app()
