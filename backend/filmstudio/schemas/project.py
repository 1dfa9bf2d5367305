from __future__ import annotations
"""Pydantic v2 schemas for Project model and its bible."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from filmstudio.schemas import reject_null


class ProjectCreate(BaseModel):
    """Schema for creating a new project."""

    name: str = Field(..., min_length=1, max_length=255)
    bible: dict[str, Any] | None = None


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class BibleUpdate(BaseModel):
    """Top-level keys to merge into the Project Bible."""

    bible: dict[str, Any]


class ScriptLockUpdate(BaseModel):
    locked: bool


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: int
    user_id: int
    name: str
    bible: dict[str, Any] | None = None
    is_script_locked: bool = False
    brand_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ExportXmlResponse(BaseModel):
    url: str
    shot_count: int
