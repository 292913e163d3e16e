"""
Top-level package for the Pre-Install Registration API.

All functionality lives in the ``app`` subpackage, importable with
fully qualified names like ``preinstall_api.app.main``.
"""

__all__ = []
