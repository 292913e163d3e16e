"""
FastAPI dependencies providing the store, services and file intake.

The ``SubmissionStore`` and ``Settings`` live on ``app.state`` (set up
by ``create_app``); each request builds lightweight service objects
around them.
"""

from fastapi import Depends, Request

from preinstall_api.app.core.config import Settings
from preinstall_api.app.core.db import SubmissionStore
from preinstall_api.app.core.uploads import FileIntake
from preinstall_api.app.services.query_service import QueryService
from preinstall_api.app.services.submission_service import SubmissionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> SubmissionStore:
    return request.app.state.store


def get_submission_service(store: SubmissionStore = Depends(get_store)) -> SubmissionService:
    return SubmissionService(store)


def get_query_service(
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> QueryService:
    return QueryService(
        store,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )


def get_file_intake(settings: Settings = Depends(get_settings)) -> FileIntake:
    return FileIntake(settings.upload_dir, settings.max_upload_size)
