from __future__ import annotations
"""Pydantic v2 schemas for generations, the generator API and FinOps."""

from datetime import datetime

from pydantic import BaseModel, Field


class GenerationRead(BaseModel):
    id: int
    project_id: int
    shot_id: int | None = None
    image_url: str
    prompt: str | None = None
    model: str | None = None
    cost: float
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AssetCreateRequest(BaseModel):
    """Request for a single storyboard image via the generic generator."""

    project_id: int
    prompt: str = Field(..., min_length=1)
    model_id: str | None = None
    shot_id: int | None = None
    force: bool = Field(False, description="Approve costs above the approval threshold")


class AssetCreateResponse(BaseModel):
    generation: GenerationRead
    cost: float


class CostEstimateRequest(BaseModel):
    model_id: str
    quantity: int = Field(1, ge=1)


class CostEstimateResponse(BaseModel):
    model_id: str
    quantity: int
    estimated_cost: float
    requires_approval: bool


class VideoCostRequest(BaseModel):
    provider: str = Field("veo3", pattern="^(veo3|sora)$")
    duration: int = Field(5, ge=1, le=600)
    resolution: str = Field("1080p", pattern="^(720p|1080p|4k)$")
    shot_count: int = Field(1, ge=1)
    prioritize_speed: bool = False


class UsageBreakdownItem(BaseModel):
    action_type: str
    quantity: int
    cost: float


class UsageSummary(BaseModel):
    project_id: int
    total_cost: float
    breakdown: list[UsageBreakdownItem]


class UsageEntryRead(BaseModel):
    id: int
    project_id: int
    user_id: int
    action_type: str
    model_id: str
    quantity: int
    cost: float
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
