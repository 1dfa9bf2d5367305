from __future__ import annotations
"""Scene and Shot ORM models — the director's breakdown of a script."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filmstudio.database import Base, LongText


class SceneStatus(str, enum.Enum):
    """Scene lifecycle statuses."""

    DRAFT = "draft"
    SCRIPT_LOCKED = "script_locked"
    FILMED = "filmed"


class ShotStatus(str, enum.Enum):
    """Shot lifecycle statuses."""

    PLANNED = "planned"
    GENERATED = "generated"
    APPROVED = "approved"


class Scene(Base):
    """One dramatic unit of the script, ordered within its project."""

    __tablename__ = "scenes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(LongText, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SceneStatus.DRAFT.value
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )

    project = relationship("Project", back_populates="scenes")
    shots = relationship(
        "Shot",
        back_populates="scene",
        cascade="all, delete-orphan",
        order_by="Shot.order",
    )


class Shot(Base):
    """A planned camera setup within a scene; owns its generated assets."""

    __tablename__ = "shots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scene_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Technical breakdown
    visual_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audio_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    camera_angle: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    movement: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lighting: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    lens: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ShotStatus.PLANNED.value
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )

    scene = relationship("Scene", back_populates="shots")
    generations = relationship(
        "Generation",
        back_populates="shot",
        cascade="all, delete-orphan",
        order_by="Generation.id",
    )
