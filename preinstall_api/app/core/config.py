"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables, with defaults for every field.  Tests and
embedding code may construct their own ``Settings`` instance and pass
it to ``create_app`` instead of relying on the module-level
``settings`` object.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# Repository root; relative database and upload paths are anchored here
# so they do not depend on the directory the server is started from.
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def resolve_project_path(path: str) -> str:
    """Return ``path`` unchanged if absolute, else resolved against ``PROJECT_ROOT``."""
    if os.path.isabs(path):
        return path
    return str((PROJECT_ROOT / path).resolve())


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Pre-Install Registration API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    # Path to the SQLite database file.  Relative paths (here and for
    # ``upload_dir``) are resolved with ``resolve_project_path``.
    database_url: str = os.getenv("DATABASE_URL", "form_submissions.db")

    # Directory receiving uploaded phasing / timing plan files and the
    # per-file size cap in bytes (10 MB by default).
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

    default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
    max_page_limit: int = int(os.getenv("MAX_PAGE_LIMIT", "200"))

    # Comma-separated list of allowed origins for the admin dashboard.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Instantiated once so other modules can import it without repeatedly
# reading environment variables.  Environment variables must be set
# before this module is imported.
settings = Settings()
