from __future__ import annotations
"""Pydantic v2 schemas for Character model."""

from pydantic import BaseModel, Field, field_validator

from filmstudio.schemas import reject_null


class CharacterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    product_reference_url: str | None = None


class CharacterUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    product_reference_url: str | None = None

    @field_validator("name")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class CharacterRead(BaseModel):
    id: int
    project_id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    product_reference_url: str | None = None
    is_locked: bool = False

    model_config = {"from_attributes": True}
