"""
Top-level API router.

Aggregates the domain routers; ``create_app`` mounts the result under
``/api``.
"""

from fastapi import APIRouter

from .endpoints import filters, submissions

router = APIRouter()

router.include_router(submissions.router, tags=["submissions"])
router.include_router(filters.router, tags=["filters"])
