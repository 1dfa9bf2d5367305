from __future__ import annotations
"""Export pipelines — NLE timeline XML, storyboard animatics and editor renders.

The XML export targets the xmeml v5 interchange format that DaVinci Resolve
and Premiere Pro import. Animatics and editor renders go through ffmpeg,
run in a worker thread so the event loop stays free.
"""

import asyncio
import logging
import os
import subprocess
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.models.editor import ClipFileType, EditorExport, ExportStatus, TrackType
from filmstudio.models.video_job import VideoJob, VideoJobStatus
from filmstudio.services import director, editor, media

logger = logging.getLogger(__name__)
settings = get_settings()

XML_FPS = 24
XML_WIDTH = 1920
XML_HEIGHT = 1080
DEFAULT_SHOT_SECONDS = 4

QUALITY_SIZES = {"720p": (1280, 720), "1080p": (1920, 1080), "4k": (3840, 2160)}


@dataclass
class ExportShot:
    id: int
    title: str
    image_url: str
    video_url: str | None = None
    duration: int | None = None


# ---------------------------------------------------------------------------
# FCPXML
# ---------------------------------------------------------------------------

def _sub(parent: ET.Element, tag: str, text: object | None = None) -> ET.Element:
    el = ET.SubElement(parent, tag)
    if text is not None:
        el.text = str(text)
    return el


def _rate(parent: ET.Element) -> None:
    _sub(_sub(parent, "rate"), "timebase", XML_FPS)


def build_fcpxml(project_name: str, shots: list[ExportShot]) -> str:
    """Sequence XML with one clipitem per shot, laid end to end."""
    root = ET.Element("xmeml", version="5")
    sequence = _sub(root, "sequence")
    sequence.set("id", "sequence-1")
    _sub(sequence, "name", project_name)
    duration_el = _sub(sequence, "duration")
    rate = _sub(sequence, "rate")
    _sub(rate, "timebase", XML_FPS)
    _sub(rate, "ntsc", "FALSE")

    video = _sub(_sub(sequence, "media"), "video")
    characteristics = _sub(_sub(video, "format"), "samplecharacteristics")
    _rate(characteristics)
    _sub(characteristics, "width", XML_WIDTH)
    _sub(characteristics, "height", XML_HEIGHT)
    _sub(characteristics, "pixelaspectratio", "square")
    track = _sub(video, "track")

    start = 0
    for index, shot in enumerate(shots):
        frames = (shot.duration or DEFAULT_SHOT_SECONDS) * XML_FPS
        end = start + frames
        file_url = shot.video_url or shot.image_url
        file_name = media.file_name_from_url(file_url, f"shot-{shot.id}")

        item = _sub(track, "clipitem")
        item.set("id", f"clipitem-{index}")
        _sub(item, "name", shot.title or f"Shot {index + 1}")
        _sub(item, "duration", frames)
        _rate(item)
        _sub(item, "start", start)
        _sub(item, "end", end)
        _sub(item, "in", 0)
        _sub(item, "out", frames)

        file_el = _sub(item, "file")
        file_el.set("id", f"file-{index}")
        _sub(file_el, "name", file_name)
        _sub(file_el, "pathurl", file_url)
        _rate(file_el)
        _sub(file_el, "duration", frames)
        file_chars = _sub(_sub(_sub(file_el, "media"), "video"), "samplecharacteristics")
        _sub(file_chars, "width", XML_WIDTH)
        _sub(file_chars, "height", XML_HEIGHT)
        start = end
    duration_el.text = str(start)

    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE xmeml>\n{body}\n'


async def _latest_videos(db: AsyncSession, shot_ids: list[int]) -> dict[int, VideoJob]:
    if not shot_ids:
        return {}
    result = await db.execute(
        select(VideoJob)
        .where(
            VideoJob.shot_id.in_(shot_ids),
            VideoJob.status == VideoJobStatus.COMPLETED.value,
        )
        .order_by(VideoJob.id)
    )
    # later jobs overwrite earlier ones
    return {job.shot_id: job for job in result.scalars().all()}


async def collect_export_shots(db: AsyncSession, project_id: int) -> list[ExportShot]:
    shots = await director.project_shots(db, project_id)
    ids = [s.id for s in shots]
    images = await director.latest_images(db, ids)
    videos = await _latest_videos(db, ids)
    return [
        ExportShot(
            id=s.id,
            title=s.visual_description or f"Shot {s.order}",
            image_url=images.get(s.id, ""),
            video_url=videos[s.id].video_url if s.id in videos else None,
            duration=videos[s.id].duration if s.id in videos else None,
        )
        for s in shots
    ]


async def export_project_xml(db: AsyncSession, project_id: int) -> tuple[str, int]:
    """Write the project's timeline XML to the media volume; returns (url, shot count)."""
    project = await director.require_project(db, project_id)
    shots = await collect_export_shots(db, project_id)
    xml = build_fcpxml(project.name, shots)
    rel_path = media.save_text(xml, f"{project_id}/exports/{uuid.uuid4().hex}.xml")
    logger.info("Exported XML for project %s (%d shots) -> %s", project_id, len(shots), rel_path)
    return media.media_url(rel_path), len(shots)


# ---------------------------------------------------------------------------
# ffmpeg
# ---------------------------------------------------------------------------

def _run_ffmpeg(cmd: list[str], timeout: int = 600) -> None:
    logger.debug("ffmpeg: %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    if result.returncode != 0:
        logger.error("FFmpeg failed: %s", result.stderr[-500:])
        raise RuntimeError("FFmpeg render failed")


def _scale_filter(index: int, width: int, height: int, fps: int) -> str:
    return (
        f"[{index}:v]scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1,fps={fps},"
        f"setpts=PTS-STARTPTS[v{index}]"
    )


def build_animatic_command(
    frames: list[tuple[str, float]],
    output_path: str,
    *,
    fps: int = XML_FPS,
    size: tuple[int, int] = (XML_WIDTH, XML_HEIGHT),
    audio_source: str | None = None,
    audio_volume: int = 100,
) -> list[str]:
    """ffmpeg argv that holds each still for its duration and concatenates them."""
    if not frames:
        raise ValueError("No frames for animatic")
    width, height = size
    cmd = ["ffmpeg", "-y"]
    filters = []
    for index, (source, seconds) in enumerate(frames):
        cmd += ["-loop", "1", "-t", f"{seconds:g}", "-i", source]
        filters.append(_scale_filter(index, width, height, fps))
    concat_inputs = "".join(f"[v{i}]" for i in range(len(frames)))
    filters.append(f"{concat_inputs}concat=n={len(frames)}:v=1:a=0[v]")

    maps = ["-map", "[v]"]
    if audio_source:
        cmd += ["-i", audio_source]
        filters.append(f"[{len(frames)}:a]volume={audio_volume / 100:g}[a]")
        maps += ["-map", "[a]", "-c:a", "aac", "-b:a", "128k", "-shortest"]

    cmd += ["-filter_complex", ";".join(filters), *maps]
    cmd += ["-c:v", "libx264", "-preset", "medium", "-crf", "23", "-pix_fmt", "yuv420p"]
    cmd += ["-r", str(fps), output_path]
    return cmd


def build_render_command(
    clips: list[tuple[str, str, float, float]],
    output_path: str,
    *,
    fps: int = XML_FPS,
    size: tuple[int, int] = (XML_WIDTH, XML_HEIGHT),
) -> list[str]:
    """ffmpeg argv for an editor render.

    ``clips`` holds ``(source, file_type, trim_start_s, duration_s)`` in
    timeline order; images are held, videos are trimmed.
    """
    if not clips:
        raise ValueError("No clips to render")
    width, height = size
    cmd = ["ffmpeg", "-y"]
    filters = []
    for index, (source, file_type, trim_start, seconds) in enumerate(clips):
        if file_type == ClipFileType.IMAGE.value:
            cmd += ["-loop", "1", "-t", f"{seconds:g}", "-i", source]
        else:
            cmd += ["-ss", f"{trim_start:g}", "-t", f"{seconds:g}", "-i", source]
        filters.append(_scale_filter(index, width, height, fps))
    concat_inputs = "".join(f"[v{i}]" for i in range(len(clips)))
    filters.append(f"{concat_inputs}concat=n={len(clips)}:v=1:a=0[v]")
    cmd += ["-filter_complex", ";".join(filters), "-map", "[v]"]
    cmd += ["-c:v", "libx264", "-preset", "medium", "-crf", "23", "-pix_fmt", "yuv420p"]
    cmd += ["-r", str(fps), output_path]
    return cmd


def _write_mock_video(rel_path: str, label: str) -> str:
    return media.save_bytes(f"[MOCK VIDEO] {label}\n".encode("utf-8"), rel_path)


# ---------------------------------------------------------------------------
# Animatic
# ---------------------------------------------------------------------------

async def create_animatic(
    db: AsyncSession,
    project_id: int,
    frame_duration: float = 2.0,
    audio_url: str | None = None,
    audio_volume: int = 100,
    *,
    frame_durations: dict[int, float] | None = None,
    fps: int = XML_FPS,
    resolution: str = f"{XML_WIDTH}x{XML_HEIGHT}",
) -> tuple[str, int, float]:
    """Render the storyboard as a slideshow; returns (url, frame count, seconds).

    ``frame_durations`` maps shot ids to seconds and overrides
    ``frame_duration`` for those shots.
    """
    await director.require_project(db, project_id)
    shots = await director.project_shots(db, project_id)
    images = await director.latest_images(db, [s.id for s in shots])
    overrides = frame_durations or {}
    frames = [
        (images[s.id], overrides.get(s.id) or frame_duration)
        for s in shots if s.id in images
    ]
    if not frames:
        raise ValueError("No storyboard frames to build an animatic from")

    total = round(sum(seconds for _, seconds in frames), 3)
    rel_path = f"{project_id}/exports/animatic_{uuid.uuid4().hex[:12]}.mp4"

    if settings.USE_MOCK_API:
        _write_mock_video(rel_path, f"animatic of {len(frames)} frames")
        return media.media_url(rel_path), len(frames), total

    os.makedirs(os.path.dirname(media.media_path(rel_path)), exist_ok=True)
    width, height = (int(n) for n in resolution.split("x"))
    cmd = build_animatic_command(
        [(media.local_source(url), seconds) for url, seconds in frames],
        media.media_path(rel_path),
        fps=fps,
        size=(width, height),
        audio_source=media.local_source(audio_url) if audio_url else None,
        audio_volume=audio_volume,
    )
    await asyncio.to_thread(_run_ffmpeg, cmd)
    logger.info("Animatic for project %s: %d frames, %.1fs", project_id, len(frames), total)
    return media.media_url(rel_path), len(frames), total


# ---------------------------------------------------------------------------
# Editor render
# ---------------------------------------------------------------------------

async def render_editor_export(db: AsyncSession, export_id: int) -> EditorExport:
    """Render an export's video tracks; the row ends up completed or failed."""
    export = await editor.update_export_status(db, export_id, ExportStatus.PROCESSING.value)
    editor_project = await editor.get_editor_project(db, export.editor_project_id)

    tracks = await editor.list_tracks(db, editor_project.id)
    video_tracks = {t.id for t in tracks if t.track_type == TrackType.VIDEO.value and not t.muted}
    clips = [
        c for c in await editor.list_clips(db, editor_project.id)
        if c.track_id in video_tracks and c.file_type != ClipFileType.AUDIO.value
    ]
    clips.sort(key=lambda c: (c.start_time, c.track_id, c.id))
    if not clips:
        return await editor.update_export_status(
            db, export_id, ExportStatus.FAILED.value, error="No video clips to render"
        )

    rel_path = (
        f"{editor_project.project_id}/exports/edit_{editor_project.id}_{export.id}.{export.format}"
    )
    if settings.USE_MOCK_API:
        _write_mock_video(rel_path, f"editor project {editor_project.id}")
        return await editor.update_export_status(
            db, export_id, ExportStatus.COMPLETED.value, export_url=media.media_url(rel_path)
        )

    os.makedirs(os.path.dirname(media.media_path(rel_path)), exist_ok=True)
    cmd = build_render_command(
        [
            (editor.clip_source(c), c.file_type, c.trim_start / 1000, c.duration / 1000)
            for c in clips
        ],
        media.media_path(rel_path),
        fps=editor_project.fps,
        size=QUALITY_SIZES.get(export.quality, (XML_WIDTH, XML_HEIGHT)),
    )
    try:
        await asyncio.to_thread(_run_ffmpeg, cmd)
    except (RuntimeError, OSError, subprocess.TimeoutExpired) as e:
        logger.error("Render of export %s failed: %s", export_id, e)
        return await editor.update_export_status(
            db, export_id, ExportStatus.FAILED.value, error=str(e)
        )

    return await editor.update_export_status(
        db, export_id, ExportStatus.COMPLETED.value, export_url=media.media_url(rel_path)
    )
