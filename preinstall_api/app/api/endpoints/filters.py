"""
Filter endpoint for the admin dashboard dropdowns.
"""

from fastapi import APIRouter, Depends

from preinstall_api.app.api.deps import get_query_service
from preinstall_api.app.schemas.submission import FilterValues
from preinstall_api.app.services.query_service import QueryService

router = APIRouter()


@router.get("/filters", response_model=FilterValues)
async def list_filters(service: QueryService = Depends(get_query_service)) -> FilterValues:
    """Return the distinct cities, states and cabinet types on file.

    A database error in one lookup only empties that list; the endpoint
    itself does not fail.
    """
    return await service.list_filter_values()
