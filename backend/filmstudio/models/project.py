from __future__ import annotations
"""Project ORM model — the root of a film: bible, script lock, and everything it owns."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filmstudio.database import Base


class Project(Base):
    """A film project.

    The Project Bible is a free-form JSON blob holding the brief, synopsis,
    script, visual style, brand palette and any other metadata.
    """

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bible: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    is_script_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    brand_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    scenes = relationship(
        "Scene",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Scene.order",
    )
    characters = relationship(
        "Character", back_populates="project", cascade="all, delete-orphan"
    )
    generations = relationship(
        "Generation", back_populates="project", cascade="all, delete-orphan"
    )
    usage_entries = relationship(
        "UsageLedger", back_populates="project", cascade="all, delete-orphan"
    )
    video_jobs = relationship(
        "VideoJob", back_populates="project", cascade="all, delete-orphan"
    )
    editor_projects = relationship(
        "EditorProject", back_populates="project", cascade="all, delete-orphan"
    )
    audio_assets = relationship(
        "AudioAsset", back_populates="project", cascade="all, delete-orphan"
    )
    brand = relationship("Brand", back_populates="projects")

    @property
    def visual_style(self) -> str | None:
        return (self.bible or {}).get("visual_style")
