from __future__ import annotations
"""Pydantic v2 schemas for generated audio."""

from datetime import datetime

from pydantic import BaseModel, Field


class TtsRequest(BaseModel):
    project_id: int
    text: str = Field(..., min_length=1, max_length=5000)
    voice_id: str | None = Field(None, description="ElevenLabs voice; defaults to DEFAULT_VOICE_ID")
    scene_id: int | None = None


class SfxRequest(BaseModel):
    project_id: int
    prompt: str = Field(..., min_length=1, max_length=1000)
    scene_id: int | None = None


class AudioAssetRead(BaseModel):
    id: int
    project_id: int
    scene_id: int | None = None
    type: str
    url: str
    label: str | None = None
    duration: float | None = None
    model_id: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
