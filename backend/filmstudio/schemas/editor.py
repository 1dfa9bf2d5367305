from __future__ import annotations
"""Pydantic v2 schemas for the timeline editor."""

from datetime import datetime

from pydantic import BaseModel, Field, PositiveFloat, field_validator

from filmstudio.models.editor import (
    ClipFileType,
    ExportFormat,
    ExportQuality,
    ExportStatus,
    TrackType,
)
from filmstudio.schemas import reject_null


# --- Editor projects ---

class EditorProjectCreate(BaseModel):
    project_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    fps: int = Field(24, ge=1, le=120)
    resolution: str = Field("1920x1080", pattern=r"^\d+x\d+$")


class EditorProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    duration: int | None = Field(None, ge=0)
    fps: int | None = Field(None, ge=1, le=120)
    resolution: str | None = Field(None, pattern=r"^\d+x\d+$")

    @field_validator("title", "duration", "fps", "resolution")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class EditorProjectRead(BaseModel):
    id: int
    project_id: int
    user_id: int
    title: str
    description: str | None = None
    duration: int
    fps: int
    resolution: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


# --- Tracks ---

class TrackCreate(BaseModel):
    track_type: TrackType
    track_number: int | None = Field(None, ge=1)
    name: str | None = Field(None, max_length=255)


class TrackUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    muted: bool | None = None
    volume: int | None = Field(None, ge=0, le=100)

    @field_validator("muted", "volume")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class TrackRead(BaseModel):
    id: int
    editor_project_id: int
    track_type: str
    track_number: int
    name: str | None = None
    muted: bool
    volume: int

    model_config = {"from_attributes": True}


# --- Clips ---

class ClipCreate(BaseModel):
    """A clip placed on a track; times in milliseconds."""

    track_id: int
    file_url: str
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: ClipFileType
    duration: int = Field(..., gt=0)
    start_time: int = Field(0, ge=0)
    trim_start: int = Field(0, ge=0)
    trim_end: int = Field(0, ge=0)
    volume: int = Field(100, ge=0, le=100)
    order: int | None = None

    @field_validator("file_url")
    @classmethod
    def file_url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("file_url must not be blank")
        return value


class ClipUpdate(BaseModel):
    track_id: int | None = None
    file_name: str | None = Field(None, min_length=1, max_length=255)
    duration: int | None = Field(None, gt=0)
    start_time: int | None = Field(None, ge=0)
    trim_start: int | None = Field(None, ge=0)
    trim_end: int | None = Field(None, ge=0)
    volume: int | None = Field(None, ge=0, le=100)
    order: int | None = None

    @field_validator("*")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class ClipPosition(BaseModel):
    id: int
    start_time: int = Field(..., ge=0)
    track_id: int | None = None


class BatchPositionUpdate(BaseModel):
    positions: list[ClipPosition]


class ClipRead(BaseModel):
    id: int
    track_id: int
    editor_project_id: int
    file_url: str
    file_name: str
    file_type: str
    duration: int
    start_time: int
    end_time: int | None = None
    trim_start: int
    trim_end: int
    volume: int
    order: int

    model_config = {"from_attributes": True}


class CutClipRequest(BaseModel):
    playhead: int = Field(..., ge=0, description="Cut position in milliseconds")


# --- Exports ---

class ExportCreate(BaseModel):
    format: ExportFormat = ExportFormat.MP4
    quality: ExportQuality = ExportQuality.Q1080P
    render: bool = Field(False, description="Render immediately with ffmpeg")


class ExportStatusUpdate(BaseModel):
    status: ExportStatus
    export_url: str | None = None
    error: str | None = None


class ExportRead(BaseModel):
    id: int
    editor_project_id: int
    format: str
    quality: str
    status: str
    export_url: str | None = None
    error: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


# --- Comments ---

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    timestamp: int = Field(0, ge=0)
    clip_id: int | None = None


class CommentUpdate(BaseModel):
    content: str | None = Field(None, min_length=1)
    resolved: bool | None = None

    @field_validator("content", "resolved")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class CommentRead(BaseModel):
    id: int
    editor_project_id: int
    clip_id: int | None = None
    user_id: int
    content: str
    timestamp: int
    resolved: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


# --- Storyboard import and animatic ---

class PopulateFromStoryboardRequest(BaseModel):
    frame_duration: int = Field(2000, gt=0, description="Milliseconds per frame")


class AnimaticRequest(BaseModel):
    project_id: int
    frame_duration: float = Field(2.0, gt=0, description="Seconds per frame")
    frame_durations: dict[int, PositiveFloat] | None = Field(
        None, description="Per-shot overrides of frame_duration, keyed by shot id"
    )
    fps: int = Field(24, ge=1, le=120)
    resolution: str = Field("1920x1080", pattern=r"^\d+x\d+$")
    audio_url: str | None = None
    audio_volume: int = Field(100, ge=0, le=100)


class AnimaticResponse(BaseModel):
    url: str
    frame_count: int
    duration: float
