from __future__ import annotations
"""Editor ORM models — timeline projects, tracks, clips, exports and review comments.

All times are stored in integer milliseconds.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filmstudio.database import Base


class TrackType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"


class ClipFileType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"


class ExportFormat(str, enum.Enum):
    MP4 = "mp4"
    WEBM = "webm"
    MOV = "mov"
    MKV = "mkv"


class ExportQuality(str, enum.Enum):
    Q720P = "720p"
    Q1080P = "1080p"
    Q4K = "4k"


class ExportStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EditorProject(Base):
    """A timeline edit attached to a film project."""

    __tablename__ = "editor_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fps: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    resolution: Mapped[str] = mapped_column(String(20), nullable=False, default="1920x1080")
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now(), onupdate=func.now()
    )

    project = relationship("Project", back_populates="editor_projects")
    tracks = relationship(
        "EditorTrack",
        back_populates="editor_project",
        cascade="all, delete-orphan",
        order_by="EditorTrack.track_number",
    )
    exports = relationship(
        "EditorExport", back_populates="editor_project", cascade="all, delete-orphan"
    )
    comments = relationship(
        "EditorComment", back_populates="editor_project", cascade="all, delete-orphan"
    )


class EditorTrack(Base):
    __tablename__ = "editor_tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    editor_project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("editor_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_type: Mapped[str] = mapped_column(String(20), nullable=False)
    track_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    muted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    volume: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    editor_project = relationship("EditorProject", back_populates="tracks")
    clips = relationship(
        "EditorClip",
        back_populates="track",
        cascade="all, delete-orphan",
        order_by="EditorClip.start_time",
    )


class EditorClip(Base):
    """A media file placed on a track."""

    __tablename__ = "editor_clips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("editor_tracks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    editor_project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("editor_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    end_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    trim_start: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trim_end: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    volume: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )

    track = relationship("EditorTrack", back_populates="clips")


class EditorExport(Base):
    __tablename__ = "editor_exports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    editor_project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("editor_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    format: Mapped[str] = mapped_column(String(10), nullable=False, default=ExportFormat.MP4.value)
    quality: Mapped[str] = mapped_column(String(10), nullable=False, default=ExportQuality.Q1080P.value)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExportStatus.PENDING.value
    )
    export_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    editor_project = relationship("EditorProject", back_populates="exports")


class EditorComment(Base):
    """A review note pinned to a timeline position."""

    __tablename__ = "editor_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    editor_project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("editor_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clip_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("editor_clips.id", ondelete="CASCADE"),
        nullable=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, server_default=func.now()
    )

    editor_project = relationship("EditorProject", back_populates="comments")
