from __future__ import annotations
"""Pydantic v2 schemas for video generation."""

from datetime import datetime

from pydantic import BaseModel, Field


class AnimateShotRequest(BaseModel):
    project_id: int
    shot_id: int
    motion_prompt: str = Field(..., min_length=1)
    provider: str = Field("veo3", pattern="^(veo3|sora|replicate)$")
    duration: int = Field(4, ge=1, le=60)
    resolution: str = Field("720p", pattern="^(720p|1080p|4k)$")
    force: bool = False


class StoryboardVideoRequest(BaseModel):
    project_id: int
    provider: str = Field("replicate", pattern="^(veo3|sora|replicate)$")
    force: bool = False


class VideoJobRead(BaseModel):
    id: int
    project_id: int
    shot_id: int | None = None
    provider: str
    model_id: str | None = None
    status: str
    task_id: str | None = None
    prompt: str | None = None
    duration: int
    video_url: str | None = None
    error: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
