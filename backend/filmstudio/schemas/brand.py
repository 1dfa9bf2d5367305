from __future__ import annotations
"""Pydantic v2 schemas for brands."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from filmstudio.schemas import reject_null


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: str | None = None
    description: str | None = None
    mission: str | None = None
    core_messaging: str | None = None
    aesthetic: str | None = None
    brand_voice: str | None = None
    visual_identity: str | None = None
    target_customer: str | None = None
    color_palette: dict[str, Any] | None = Field(
        None, description="Color roles (primary, secondary, accent) to hex codes"
    )
    negative_constraints: str | None = None


class BrandUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    logo_url: str | None = None
    description: str | None = None
    mission: str | None = None
    core_messaging: str | None = None
    aesthetic: str | None = None
    brand_voice: str | None = None
    visual_identity: str | None = None
    target_customer: str | None = None
    color_palette: dict[str, Any] | None = None
    negative_constraints: str | None = None

    @field_validator("name")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class BrandRead(BaseModel):
    id: int
    user_id: int
    name: str
    logo_url: str | None = None
    description: str | None = None
    mission: str | None = None
    core_messaging: str | None = None
    aesthetic: str | None = None
    brand_voice: str | None = None
    visual_identity: str | None = None
    target_customer: str | None = None
    color_palette: dict[str, Any] | None = None
    negative_constraints: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class IngestRequest(BaseModel):
    source_url: str = Field(..., min_length=1)
    project_id: int | None = Field(None, description="Project billed for the extraction")


class BrandAssignment(BaseModel):
    brand_id: int | None = Field(None, description="null unlinks the project")


class DirectivesRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class DirectivesResponse(BaseModel):
    prompt: str
    brand_applied: bool
