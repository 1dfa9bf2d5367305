"""Video jobs — animate storyboard frames and record each provider call.

Every call creates a ``VideoJob`` row before the provider runs and moves it
to ``completed`` or ``failed`` afterwards. A failed job is returned to the
caller rather than raised, so the failure stays recorded.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from urllib.parse import urlparse

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.models.video_job import VideoJob, VideoJobStatus
from filmstudio.services import brands, characters, director, media
from filmstudio.services.base_gen_service import GenerationError
from filmstudio.services.character_lock import build_motion_prompt
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import estimate_video_job, validate_cost
from filmstudio.services.video_gen import generate_video, provider_model

logger = logging.getLogger(__name__)

MAX_SEQUENCE_SECONDS = 60
SECONDS_PER_STORYBOARD_SHOT = 3


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def load_image(url: str) -> tuple[bytes, str]:
    """Bytes and MIME type of a frame, read from the media volume when we host it."""
    mime = mimetypes.guess_type(urlparse(url).path)[0] or "image/png"
    rel = media.rel_path_from_url(url)
    if rel is not None:
        data = await asyncio.to_thread(_read_file, media.media_path(rel))
        return data, mime

    async with httpx.AsyncClient(timeout=60.0, follow_redirects=True) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content, response.headers.get("content-type", mime)


async def _run_job(
    db: AsyncSession,
    job: VideoJob,
    *,
    user_id: int,
    cost: float,
    image_url: str | None,
    resolution: str,
) -> VideoJob:
    image_bytes, image_mime = None, "image/png"
    try:
        if image_url:
            image_bytes, image_mime = await load_image(image_url)
        result = await generate_video(
            provider=job.provider,
            prompt=job.prompt or "",
            project_id=job.project_id,
            image_bytes=image_bytes,
            image_mime=image_mime,
            duration=job.duration,
            resolution=resolution,
        )
    except (GenerationError, httpx.HTTPError, OSError) as e:
        logger.error("Video job %s failed: %s", job.id, e)
        job.status = VideoJobStatus.FAILED.value
        job.error = str(e)
        await db.flush()
        await db.refresh(job)
        return job

    job.status = VideoJobStatus.COMPLETED.value
    job.task_id = result.task_id
    job.video_url = result.video_url
    await db.flush()
    await db.refresh(job)

    await log_usage(
        db,
        project_id=job.project_id,
        user_id=user_id,
        model_id=job.model_id or job.provider,
        cost=cost,
        action_type=ActionType.VIDEO_GEN,
    )
    logger.info("Video job %s completed: %s", job.id, job.video_url)
    return job


async def _create_job(
    db: AsyncSession,
    *,
    project_id: int,
    shot_id: int | None,
    provider: str,
    prompt: str,
    duration: int,
) -> VideoJob:
    job = VideoJob(
        project_id=project_id,
        shot_id=shot_id,
        provider=provider,
        model_id=provider_model(provider),
        status=VideoJobStatus.PENDING.value,
        prompt=prompt,
        duration=duration,
    )
    db.add(job)
    await db.flush()
    return job


async def animate_shot(
    db: AsyncSession,
    *,
    project_id: int,
    shot_id: int,
    user_id: int,
    motion_prompt: str,
    provider: str = "veo3",
    duration: int = 4,
    resolution: str = "720p",
    force: bool = False,
) -> VideoJob:
    """Image-to-video from the shot's latest storyboard frame."""
    project = await director.require_project(db, project_id)
    shot = await director.require_project_shot(db, project_id, shot_id)

    image_url = (await director.latest_images(db, [shot.id])).get(shot.id)
    if not image_url:
        raise ValueError(f"Shot {shot_id} has no storyboard image to animate")

    prompt = motion_prompt
    locked = await characters.get_locked_character(db, project_id)
    if locked is not None:
        brand = await brands.project_identity(db, project)
        prompt = build_motion_prompt(
            motion_prompt, characters.lock_config(locked, project.bible, brand)
        )

    cost = estimate_video_job(provider, duration, resolution)
    validate_cost(cost, approved=force)

    job = await _create_job(
        db,
        project_id=project_id,
        shot_id=shot_id,
        provider=provider,
        prompt=prompt,
        duration=duration,
    )
    return await _run_job(
        db, job,
        user_id=user_id,
        cost=cost,
        image_url=image_url,
        resolution=resolution,
    )


def storyboard_sequence_prompt(shot_prompts: list[str]) -> str:
    combined = "\n".join(f"Shot {i}: {p}" for i, p in enumerate(shot_prompts, start=1))
    return (
        "Create a cinematic video sequence from these storyboard shots:\n"
        f"{combined}\n\n"
        "Maintain visual continuity and smooth transitions between shots."
    )


def sequence_duration(shot_count: int) -> int:
    return min(shot_count * SECONDS_PER_STORYBOARD_SHOT, MAX_SEQUENCE_SECONDS)


async def generate_from_storyboard(
    db: AsyncSession,
    *,
    project_id: int,
    user_id: int,
    provider: str = "replicate",
    force: bool = False,
) -> VideoJob:
    """One continuous clip covering every shot of the project."""
    await director.require_project(db, project_id)
    shots = await director.project_shots(db, project_id)
    if not shots:
        raise ValueError(f"Project {project_id} has no shots")

    prompts = [s.visual_description or f"Shot {s.order}" for s in shots]
    prompt = storyboard_sequence_prompt(prompts)
    duration = sequence_duration(len(shots))

    cost = estimate_video_job(provider, duration)
    validate_cost(cost, approved=force)

    first_image = (await director.latest_images(db, [shots[0].id])).get(shots[0].id)

    job = await _create_job(
        db,
        project_id=project_id,
        shot_id=None,
        provider=provider,
        prompt=prompt,
        duration=duration,
    )
    return await _run_job(
        db, job,
        user_id=user_id,
        cost=cost,
        image_url=first_image,
        resolution="720p",
    )


async def list_jobs(db: AsyncSession, project_id: int) -> list[VideoJob]:
    result = await db.execute(
        select(VideoJob).where(VideoJob.project_id == project_id).order_by(VideoJob.id.desc())
    )
    return list(result.scalars().all())


async def get_job(db: AsyncSession, job_id: int) -> VideoJob:
    job = await db.get(VideoJob, job_id)
    if job is None:
        raise ValueError(f"Video job {job_id} not found")
    return job

