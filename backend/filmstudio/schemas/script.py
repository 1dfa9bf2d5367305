from __future__ import annotations
"""Pydantic v2 schemas for the script writer API."""

from pydantic import BaseModel, Field


class SynopsisRequest(BaseModel):
    project_id: int
    brief: str = Field(..., min_length=1)
    director_notes: str | None = None


class ScriptRequest(BaseModel):
    """Generate a script from a synopsis, falling back to a brief or the stored brief."""

    project_id: int
    synopsis: str | None = None
    brief: str | None = None
    director_notes: str | None = None


class RefineRequest(BaseModel):
    project_id: int
    script: str | None = Field(
        None, description="Script to refine; defaults to the script stored in the bible"
    )
    notes: str = Field(..., min_length=1)
    director_notes: str | None = None


class VisualStyleRequest(BaseModel):
    project_id: int


class ScriptTextResponse(BaseModel):
    project_id: int
    content: str
