"""
Application package initializer.

Holds the FastAPI entrypoint (``main``), the persistence and
configuration layer (``core``), request/response schemas, services
and the HTTP routes under ``api``.
"""

from .main import app  # noqa: F401
