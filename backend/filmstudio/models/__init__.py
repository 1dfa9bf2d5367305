"""ORM model package — registers all models with Base.metadata."""

from filmstudio.models.brand import Brand
from filmstudio.models.project import Project
from filmstudio.models.scene import Scene, SceneStatus, Shot, ShotStatus
from filmstudio.models.generation import Generation, UsageLedger
from filmstudio.models.character import Character
from filmstudio.models.video_job import VideoJob, VideoJobStatus
from filmstudio.models.editor import (
    ClipFileType,
    EditorClip,
    EditorComment,
    EditorExport,
    EditorProject,
    EditorTrack,
    ExportFormat,
    ExportQuality,
    ExportStatus,
    TrackType,
)
from filmstudio.models.audio import AudioAsset, AudioType

__all__ = [
    "Project",
    "Scene",
    "SceneStatus",
    "Shot",
    "ShotStatus",
    "Generation",
    "UsageLedger",
    "Character",
    "VideoJob",
    "VideoJobStatus",
    "EditorProject",
    "EditorTrack",
    "EditorClip",
    "EditorExport",
    "EditorComment",
    "TrackType",
    "ClipFileType",
    "ExportFormat",
    "ExportQuality",
    "ExportStatus",
    "AudioAsset",
    "AudioType",
    "Brand",
]
