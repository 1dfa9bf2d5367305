from __future__ import annotations
"""Pydantic v2 schemas for Scene and Shot models."""

from pydantic import BaseModel, Field, field_validator

from filmstudio.models.scene import SceneStatus, ShotStatus
from filmstudio.schemas import reject_null


class SceneCreate(BaseModel):
    """Schema for creating a single scene by hand."""

    title: str | None = Field(None, max_length=255)
    description: str | None = None
    order: int | None = None


class SceneUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    order: int | None = None
    status: SceneStatus | None = None

    @field_validator("order", "status")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class SceneRead(BaseModel):
    """Schema for reading a scene."""

    id: int
    project_id: int
    order: int
    title: str | None = None
    description: str | None = None
    status: str

    model_config = {"from_attributes": True}


class ShotUpdate(BaseModel):
    """Schema for editing a shot's technical breakdown or status."""

    visual_description: str | None = None
    audio_description: str | None = None
    camera_angle: str | None = Field(None, max_length=100)
    movement: str | None = Field(None, max_length=100)
    lighting: str | None = Field(None, max_length=255)
    lens: str | None = Field(None, max_length=100)
    order: int | None = None
    status: ShotStatus | None = None

    @field_validator("order", "status")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class ShotRead(BaseModel):
    """Schema for reading a shot, with the URL of its latest generated image."""

    id: int
    scene_id: int
    order: int
    visual_description: str | None = None
    audio_description: str | None = None
    camera_angle: str | None = None
    movement: str | None = None
    lighting: str | None = None
    lens: str | None = None
    status: str
    image_url: str | None = None

    model_config = {"from_attributes": True}


class SceneLayout(SceneRead):
    """A scene with its shots, as shown on the production board."""

    shots: list[ShotRead] = []


class CreateScenesRequest(BaseModel):
    project_id: int
    script: str | None = Field(
        None, description="Script text; defaults to the script stored in the bible"
    )


class ShotImageRequest(BaseModel):
    visual_style: str | None = None
    force: bool = False
