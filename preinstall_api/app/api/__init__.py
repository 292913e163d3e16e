"""
API package containing the HTTP routes.

``router.py`` exposes a single ``router`` that includes every
endpoint module under ``endpoints``.
"""
