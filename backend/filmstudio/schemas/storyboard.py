from __future__ import annotations
"""Pydantic v2 schemas for the character-locked storyboard API."""

from typing import Any

from pydantic import BaseModel, Field


class StoryboardGenerateRequest(BaseModel):
    project_id: int
    shot_description: str = Field(..., min_length=1)
    shot_id: int | None = None
    force: bool = False


class StoryboardGenerateResponse(BaseModel):
    generation_id: int
    image_url: str
    prompt: str
    character_locked: bool
    brand_applied: bool
    cost: float


class VariationsRequest(BaseModel):
    project_id: int
    shot_description: str = Field(..., min_length=1)
    count: int = Field(3, ge=1, le=5)


class VariationsResponse(BaseModel):
    prompts: list[str]


class FrameDescriptorResponse(BaseModel):
    composition: str
    lighting: str
    characters: list[dict[str, Any]]
    mood: str
    color_palette: dict[str, str]
    constraints: list[str]


class LockPreviewRequest(BaseModel):
    project_id: int
    base_prompt: str = Field(..., min_length=1)


class LockPreviewResponse(BaseModel):
    base_prompt: str
    character_reference: str
    product_reference: str | None = None
    style_guidelines: str
    full_prompt: str
