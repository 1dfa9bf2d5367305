"""Pydantic request/response schemas — the typed contract of the HTTP API."""


def reject_null(value):
    """Update fields may be omitted, but ``null`` cannot clear a required column."""
    if value is None:
        raise ValueError("may be omitted but not set to null")
    return value
