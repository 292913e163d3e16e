"""
Service layer for browsing stored submissions.

Used by the admin dashboard: a filtered, searchable, paginated listing,
single-record lookup and deletion, and the distinct values that
populate the city / state / cabinet type dropdowns.

``page`` and ``limit`` are clamped rather than rejected: ``page`` is at
least 1 and ``limit`` lies between 1 and ``max_page_limit``.  ``page`` is
also capped so the resulting offset still fits in a SQLite INTEGER.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from preinstall_api.app.core.db import SQLITE_MAX_INTEGER, SubmissionStore
from preinstall_api.app.core.exceptions import NotFoundError, StorageError
from preinstall_api.app.schemas.submission import (
    FilterValues,
    SubmissionFilter,
    SubmissionPage,
    SubmissionRead,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Submission not found"
DELETED_MESSAGE = "Submission deleted successfully"

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def clamp_pagination(page: Optional[int], limit: Optional[int], default_limit: int, max_limit: int):
    """Return ``(page, limit)`` forced into their valid ranges."""
    if limit is None:
        limit = default_limit
    limit = min(max(1, limit), max_limit)
    max_page = SQLITE_MAX_INTEGER // limit + 1
    page = min(max(1, page or 1), max_page)
    return page, limit


class QueryService:
    """Read and delete operations over ``SubmissionStore``."""

    def __init__(
        self,
        store: SubmissionStore,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self.store = store
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def list_submissions(
        self,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        cabinet_type: Optional[str] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> SubmissionPage:
        """Return one page of submissions matching the given filters.

        ``search`` matches a case-sensitive substring of the
        intersection name, city, end user or distributor.  ``city``,
        ``state`` and ``cabinet_type`` must match exactly.  Empty
        strings are treated as "no filter", which is what the dashboard
        sends for untouched controls.
        """
        page, limit = clamp_pagination(page, limit, self.default_limit, self.max_limit)
        filters = SubmissionFilter(
            search=search or None,
            city=city or None,
            state=state or None,
            cabinet_type=cabinet_type or None,
        )
        offset = (page - 1) * limit
        submissions = self.store.list(filters, limit=limit, offset=offset)
        total = self.store.count(filters)
        return SubmissionPage(
            submissions=submissions,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    async def get_submission(self, submission_id: int) -> SubmissionRead:
        submission = self.store.get_by_id(submission_id)
        if submission is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return submission

    async def delete_submission(self, submission_id: int) -> str:
        """Delete a submission by id.

        Raises ``NotFoundError`` if no row was removed, so deleting the
        same id twice reports "not found" the second time.
        """
        removed = self.store.delete_by_id(submission_id)
        if not removed:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("Deleted submission %s", submission_id)
        return DELETED_MESSAGE

    async def _distinct_or_empty(self, column: str) -> List[str]:
        try:
            return self.store.distinct_values(column)
        except StorageError as exc:
            logger.error("Error fetching distinct %s values: %s", column, exc)
            return []

    async def list_filter_values(self) -> FilterValues:
        """Return distinct cities, states and cabinet types.

        Each lookup is isolated: a storage failure empties only the
        affected list.
        """
        return FilterValues(
            cities=await self._distinct_or_empty("city"),
            states=await self._distinct_or_empty("state"),
            cabinet_types=await self._distinct_or_empty("cabinetType"),
        )
