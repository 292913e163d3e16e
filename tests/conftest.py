"""
pytest configuration and shared fixtures.

Every test gets its own SQLite file under ``tmp_path`` so tests never
share state or touch the project's real database.
"""

from typing import Dict

import pytest
from fastapi.testclient import TestClient

from preinstall_api.app.core.config import Settings
from preinstall_api.app.core.db import SubmissionStore
from preinstall_api.app.main import create_app

UPLOAD_LIMIT = 1024


def make_fields(**overrides) -> Dict[str, str]:
    """Column values for a complete submission, as passed to ``SubmissionStore.insert``."""
    fields = {
        "intersection_name": "Main St & 1st Ave",
        "city": "Springfield",
        "state": "IL",
        "end_user": "City Traffic Department",
        "distributor": "Orange Traffic",
        "cabinet_type": "TS2 Type 1",
        "tls_connection": "Cellular",
        "detection_io": "SDLC",
        "phasing": "8 phase",
        "timing_plans": "",
    }
    fields.update(overrides)
    return fields


def make_form(**overrides) -> Dict[str, str]:
    """A valid registration form keyed by its camelCase field names."""
    form = {
        "intersectionName": "Main St & 1st Ave",
        "city": "Springfield",
        "state": "IL",
        "endUser": "City Traffic Department",
        "distributor": "Orange Traffic",
        "cabinetType": "TS2 Type 1",
        "tlsConnection": "Cellular",
        "detectionIO": "SDLC",
        "phasingText": "8 phase",
    }
    form.update(overrides)
    return form


@pytest.fixture
def store(tmp_path):
    """An opened store backed by a fresh database file."""
    store = SubmissionStore(str(tmp_path / "submissions.db"))
    store.open()
    yield store
    store.close()


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "api.db"),
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=UPLOAD_LIMIT,
        max_page_limit=100,
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    """TestClient with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
