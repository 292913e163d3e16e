"""
Endpoint modules.

Each module defines an ``APIRouter`` for one concern; they are
aggregated in ``api/router.py``.
"""
