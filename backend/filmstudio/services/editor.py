from __future__ import annotations
"""Editor service — persistence for timeline projects, tracks, clips, exports and comments.

Times are integer milliseconds. A clip's ``end_time`` is always
``start_time + duration`` and the editor project's ``duration`` tracks the
end of its last clip.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.models.editor import (
    ClipFileType,
    EditorClip,
    EditorComment,
    EditorExport,
    EditorProject,
    EditorTrack,
    ExportStatus,
    TrackType,
)
from filmstudio.services import director, media, timeline

logger = logging.getLogger(__name__)

STORYBOARD_FRAME_MS = 2000


# ---------------------------------------------------------------------------
# Editor projects
# ---------------------------------------------------------------------------

async def list_editor_projects(db: AsyncSession, project_id: int) -> list[EditorProject]:
    result = await db.execute(
        select(EditorProject)
        .where(EditorProject.project_id == project_id)
        .order_by(EditorProject.id.desc())
    )
    return list(result.scalars().all())


async def get_editor_project(db: AsyncSession, editor_project_id: int) -> EditorProject:
    editor_project = await db.get(EditorProject, editor_project_id)
    if editor_project is None:
        raise ValueError(f"Editor project {editor_project_id} not found")
    return editor_project


async def create_editor_project(
    db: AsyncSession, user_id: int, data: dict[str, Any]
) -> EditorProject:
    """Create an edit with one empty video track and one empty audio track."""
    await director.require_project(db, data["project_id"])
    editor_project = EditorProject(user_id=user_id, duration=0, **data)
    db.add(editor_project)
    await db.flush()
    db.add_all([
        EditorTrack(
            editor_project_id=editor_project.id,
            track_type=TrackType.VIDEO.value,
            track_number=1,
            name="Video 1",
        ),
        EditorTrack(
            editor_project_id=editor_project.id,
            track_type=TrackType.AUDIO.value,
            track_number=2,
            name="Audio 1",
        ),
    ])
    await db.flush()
    await db.refresh(editor_project)
    logger.info("Created editor project %s for project %s", editor_project.id, data["project_id"])
    return editor_project


async def update_editor_project(
    db: AsyncSession, editor_project_id: int, data: dict[str, Any]
) -> EditorProject:
    editor_project = await get_editor_project(db, editor_project_id)
    for key, value in data.items():
        setattr(editor_project, key, value)
    await db.flush()
    await db.refresh(editor_project)
    return editor_project


async def delete_editor_project(db: AsyncSession, editor_project_id: int) -> None:
    editor_project = await get_editor_project(db, editor_project_id)
    await db.delete(editor_project)
    await db.flush()


async def _refresh_duration(db: AsyncSession, editor_project_id: int) -> None:
    result = await db.execute(
        select(func.max(EditorClip.end_time)).where(
            EditorClip.editor_project_id == editor_project_id
        )
    )
    editor_project = await get_editor_project(db, editor_project_id)
    editor_project.duration = result.scalar() or 0
    await db.flush()


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------

async def list_tracks(db: AsyncSession, editor_project_id: int) -> list[EditorTrack]:
    result = await db.execute(
        select(EditorTrack)
        .where(EditorTrack.editor_project_id == editor_project_id)
        .order_by(EditorTrack.track_number)
    )
    return list(result.scalars().all())


async def get_track(db: AsyncSession, track_id: int) -> EditorTrack:
    track = await db.get(EditorTrack, track_id)
    if track is None:
        raise ValueError(f"Track {track_id} not found")
    return track


async def create_track(
    db: AsyncSession, editor_project_id: int, data: dict[str, Any]
) -> EditorTrack:
    await get_editor_project(db, editor_project_id)
    track_number = data.pop("track_number", None)
    if track_number is None:
        result = await db.execute(
            select(func.max(EditorTrack.track_number)).where(
                EditorTrack.editor_project_id == editor_project_id
            )
        )
        track_number = (result.scalar() or 0) + 1
    track_type = TrackType(data.pop("track_type")).value
    name = data.pop("name", None) or f"{track_type.capitalize()} {track_number}"
    track = EditorTrack(
        editor_project_id=editor_project_id,
        track_type=track_type,
        track_number=track_number,
        name=name,
        **data,
    )
    db.add(track)
    await db.flush()
    await db.refresh(track)
    return track


async def update_track(db: AsyncSession, track_id: int, data: dict[str, Any]) -> EditorTrack:
    track = await get_track(db, track_id)
    for key, value in data.items():
        setattr(track, key, value)
    await db.flush()
    await db.refresh(track)
    return track


async def delete_track(db: AsyncSession, track_id: int) -> None:
    track = await get_track(db, track_id)
    editor_project_id = track.editor_project_id
    await db.delete(track)
    await db.flush()
    await _refresh_duration(db, editor_project_id)


# ---------------------------------------------------------------------------
# Clips
# ---------------------------------------------------------------------------

async def list_clips(db: AsyncSession, editor_project_id: int) -> list[EditorClip]:
    result = await db.execute(
        select(EditorClip)
        .where(EditorClip.editor_project_id == editor_project_id)
        .order_by(EditorClip.track_id, EditorClip.start_time, EditorClip.id)
    )
    return list(result.scalars().all())


async def get_clip(db: AsyncSession, clip_id: int) -> EditorClip:
    clip = await db.get(EditorClip, clip_id)
    if clip is None:
        raise ValueError(f"Clip {clip_id} not found")
    return clip


async def _track_in_project(db: AsyncSession, track_id: int, editor_project_id: int) -> EditorTrack:
    track = await get_track(db, track_id)
    if track.editor_project_id != editor_project_id:
        raise ValueError(f"Track {track_id} does not belong to editor project {editor_project_id}")
    return track


async def _next_order(db: AsyncSession, track_id: int) -> int:
    result = await db.execute(select(EditorClip.order).where(EditorClip.track_id == track_id))
    return timeline.next_clip_order(result.scalars().all())


async def create_clip(
    db: AsyncSession, editor_project_id: int, data: dict[str, Any]
) -> EditorClip:
    await get_editor_project(db, editor_project_id)
    await _track_in_project(db, data["track_id"], editor_project_id)
    if data.get("order") is None:
        data["order"] = await _next_order(db, data["track_id"])
    data["file_type"] = ClipFileType(data["file_type"]).value
    clip = EditorClip(
        editor_project_id=editor_project_id,
        end_time=data.get("start_time", 0) + data["duration"],
        **data,
    )
    db.add(clip)
    await db.flush()
    await _refresh_duration(db, editor_project_id)
    await db.refresh(clip)
    return clip


async def update_clip(db: AsyncSession, clip_id: int, data: dict[str, Any]) -> EditorClip:
    clip = await get_clip(db, clip_id)
    if data.get("track_id") is not None:
        await _track_in_project(db, data["track_id"], clip.editor_project_id)
    for key, value in data.items():
        setattr(clip, key, value)
    clip.end_time = clip.start_time + clip.duration
    await db.flush()
    await _refresh_duration(db, clip.editor_project_id)
    await db.refresh(clip)
    return clip


async def update_clip_position(
    db: AsyncSession, clip_id: int, start_time: int, track_id: int | None = None
) -> EditorClip:
    data: dict[str, Any] = {"start_time": max(0, start_time)}
    if track_id is not None:
        data["track_id"] = track_id
    return await update_clip(db, clip_id, data)


async def batch_update_positions(
    db: AsyncSession, editor_project_id: int, positions: list[dict[str, Any]]
) -> int:
    """Apply several drag results at once; returns how many clips moved."""
    updated = 0
    for position in positions:
        clip = await get_clip(db, position["id"])
        if clip.editor_project_id != editor_project_id:
            raise ValueError(
                f"Clip {clip.id} does not belong to editor project {editor_project_id}"
            )
        if position.get("track_id") is not None:
            await _track_in_project(db, position["track_id"], editor_project_id)
            clip.track_id = position["track_id"]
        clip.start_time = max(0, position["start_time"])
        clip.end_time = clip.start_time + clip.duration
        updated += 1
    await db.flush()
    await _refresh_duration(db, editor_project_id)
    return updated


async def delete_clip(db: AsyncSession, clip_id: int) -> None:
    clip = await get_clip(db, clip_id)
    editor_project_id = clip.editor_project_id
    await db.delete(clip)
    await db.flush()
    await _refresh_duration(db, editor_project_id)


async def cut_clip(db: AsyncSession, clip_id: int, playhead: int) -> list[EditorClip]:
    """Split a clip at ``playhead`` (ms). The original row becomes part 1."""
    clip = await get_clip(db, clip_id)
    source = timeline.TimelineClip(
        id=clip.id, start=clip.start_time, duration=clip.duration, name=clip.file_name,
    )
    first, second = timeline.cut_clip([source], clip.id, playhead)

    first_duration = int(first.duration)
    clip.duration = first_duration
    clip.end_time = clip.start_time + first_duration
    clip.file_name = first.name[:255]

    second_clip = EditorClip(
        track_id=clip.track_id,
        editor_project_id=clip.editor_project_id,
        file_url=clip.file_url,
        file_name=second.name[:255],
        file_type=clip.file_type,
        duration=int(second.duration),
        start_time=int(second.start),
        end_time=int(second.end),
        trim_start=clip.trim_start + first_duration,
        trim_end=clip.trim_end,
        volume=clip.volume,
        order=await _next_order(db, clip.track_id),
    )
    clip.trim_end = 0
    db.add(second_clip)
    await db.flush()
    await db.refresh(clip)
    await db.refresh(second_clip)
    logger.info("Cut clip %s at %sms -> new clip %s", clip.id, playhead, second_clip.id)
    return [clip, second_clip]


async def populate_from_storyboard(
    db: AsyncSession, editor_project_id: int, frame_duration: int = STORYBOARD_FRAME_MS
) -> list[EditorClip]:
    """Lay every shot's latest storyboard frame end to end on video track 1."""
    editor_project = await get_editor_project(db, editor_project_id)
    shots = await director.project_shots(db, editor_project.project_id)
    images = await director.latest_images(db, [s.id for s in shots])
    frames = [images[s.id] for s in shots if s.id in images]
    if not frames:
        return []

    result = await db.execute(
        select(EditorTrack).where(
            EditorTrack.editor_project_id == editor_project_id,
            EditorTrack.track_number == 1,
        )
    )
    track = result.scalar_one_or_none()
    if track is None:
        track = EditorTrack(
            editor_project_id=editor_project_id,
            track_type=TrackType.VIDEO.value,
            track_number=1,
            name="Video 1",
        )
        db.add(track)
        await db.flush()

    clips = []
    for index, url in enumerate(frames):
        start = index * frame_duration
        clips.append(EditorClip(
            track_id=track.id,
            editor_project_id=editor_project_id,
            file_url=url,
            file_name=f"Storyboard Frame {index + 1}",
            file_type=ClipFileType.IMAGE.value,
            duration=frame_duration,
            start_time=start,
            end_time=start + frame_duration,
            order=index + 1,
        ))
    db.add_all(clips)
    await db.flush()
    await _refresh_duration(db, editor_project_id)
    logger.info("Added %d storyboard frames to editor project %s", len(clips), editor_project_id)
    return clips


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

async def create_export(
    db: AsyncSession, editor_project_id: int, user_id: int, fmt: str, quality: str
) -> EditorExport:
    await get_editor_project(db, editor_project_id)
    export = EditorExport(
        editor_project_id=editor_project_id,
        user_id=user_id,
        format=fmt,
        quality=quality,
        status=ExportStatus.PENDING.value,
    )
    db.add(export)
    await db.flush()
    await db.refresh(export)
    return export


async def get_export(db: AsyncSession, export_id: int) -> EditorExport:
    export = await db.get(EditorExport, export_id)
    if export is None:
        raise ValueError(f"Export {export_id} not found")
    return export


async def update_export_status(
    db: AsyncSession,
    export_id: int,
    status: str,
    export_url: str | None = None,
    error: str | None = None,
) -> EditorExport:
    export = await get_export(db, export_id)
    export.status = ExportStatus(status).value
    if export_url is not None:
        export.export_url = export_url
    if error is not None:
        export.error = error
    if export.status in (ExportStatus.COMPLETED.value, ExportStatus.FAILED.value):
        export.completed_at = datetime.now(timezone.utc).replace(tzinfo=None)
    await db.flush()
    await db.refresh(export)
    return export


async def list_exports(db: AsyncSession, editor_project_id: int) -> list[EditorExport]:
    result = await db.execute(
        select(EditorExport)
        .where(EditorExport.editor_project_id == editor_project_id)
        .order_by(EditorExport.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

async def list_comments(db: AsyncSession, editor_project_id: int) -> list[EditorComment]:
    result = await db.execute(
        select(EditorComment)
        .where(EditorComment.editor_project_id == editor_project_id)
        .order_by(EditorComment.timestamp, EditorComment.id)
    )
    return list(result.scalars().all())


async def create_comment(
    db: AsyncSession, editor_project_id: int, user_id: int, data: dict[str, Any]
) -> EditorComment:
    await get_editor_project(db, editor_project_id)
    if data.get("clip_id") is not None:
        clip = await get_clip(db, data["clip_id"])
        if clip.editor_project_id != editor_project_id:
            raise ValueError(f"Clip {clip.id} does not belong to editor project {editor_project_id}")
    comment = EditorComment(editor_project_id=editor_project_id, user_id=user_id, **data)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return comment


async def get_comment(db: AsyncSession, comment_id: int) -> EditorComment:
    comment = await db.get(EditorComment, comment_id)
    if comment is None:
        raise ValueError(f"Comment {comment_id} not found")
    return comment


async def update_comment(db: AsyncSession, comment_id: int, data: dict[str, Any]) -> EditorComment:
    comment = await get_comment(db, comment_id)
    for key, value in data.items():
        setattr(comment, key, value)
    await db.flush()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    comment = await get_comment(db, comment_id)
    await db.delete(comment)
    await db.flush()


def clip_source(clip: EditorClip) -> str:
    """Where ffmpeg reads a clip from."""
    return media.local_source(clip.file_url)
