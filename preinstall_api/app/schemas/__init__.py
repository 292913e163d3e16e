"""
Pydantic schema definitions for API payloads.

Schemas are kept separate from the SQLite table layout so that the
camelCase JSON representation can differ from the snake_case columns.
"""
