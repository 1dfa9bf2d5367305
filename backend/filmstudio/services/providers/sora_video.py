"""Sora video generation provider (OpenAI videos API).

POST /videos creates a job, GET /videos/{id} reports progress, and the
finished MP4 is served from GET /videos/{id}/content with the same bearer
token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from filmstudio.services.providers import VideoResult

logger = logging.getLogger(__name__)

# Clip lengths the API accepts
SUPPORTED_SECONDS = (4, 8, 12)

_SIZES = {
    ("720p", "16:9"): "1280x720",
    ("720p", "9:16"): "720x1280",
    ("1080p", "16:9"): "1792x1024",
    ("1080p", "9:16"): "1024x1792",
}


def nearest_seconds(duration: int) -> int:
    return min(SUPPORTED_SECONDS, key=lambda s: (abs(s - duration), s))


def video_size(resolution: str, aspect_ratio: str) -> str:
    return _SIZES.get((resolution, aspect_ratio), _SIZES[("720p", "16:9")])


async def generate_video(
    *,
    prompt: str,
    model: str,
    api_key: str,
    base_url: str,
    image_bytes: bytes | None = None,
    image_mime: str = "image/png",
    duration: int = 4,
    resolution: str = "720p",
    aspect_ratio: str = "16:9",
    http_client: httpx.AsyncClient | None = None,
    poll_interval: float = 15,
    poll_timeout: float = 900,
) -> VideoResult:
    """Generate a clip with Sora, optionally starting from a reference frame."""
    if not api_key:
        raise ValueError("Sora API key is required")
    if not base_url:
        raise ValueError("Sora base URL is required")

    base_url = base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {api_key}"}
    seconds = nearest_seconds(duration)
    form: dict[str, Any] = {
        "model": model,
        "prompt": prompt,
        "seconds": str(seconds),
        "size": video_size(resolution, aspect_ratio),
    }
    files = None
    if image_bytes:
        ext = image_mime.split("/")[-1]
        files = {"input_reference": (f"reference.{ext}", image_bytes, image_mime)}

    client = http_client or httpx.AsyncClient(timeout=60.0)
    own_client = http_client is None

    try:
        resp = await client.post(f"{base_url}/videos", data=form, files=files, headers=headers)
        resp.raise_for_status()
        job = resp.json()
        task_id = job.get("id")
        if not task_id:
            raise RuntimeError(f"Sora task creation failed: {job}")

        logger.info("Sora task created: %s (model=%s, seconds=%d)", task_id, model, seconds)

        elapsed = 0.0
        while elapsed < poll_timeout:
            await asyncio.sleep(poll_interval)
            elapsed += poll_interval

            poll_resp = await client.get(f"{base_url}/videos/{task_id}", headers=headers)
            poll_resp.raise_for_status()
            poll_data = poll_resp.json()
            status = (poll_data.get("status") or "").lower()

            if status == "completed":
                return VideoResult(
                    video_url=f"{base_url}/videos/{task_id}/content",
                    provider="sora",
                    model=model,
                    task_id=task_id,
                    duration=seconds,
                    download_headers=headers,
                )
            if status == "failed":
                error = poll_data.get("error") or {}
                msg = error.get("message") if isinstance(error, dict) else error
                raise RuntimeError(f"Sora task failed: {msg or 'unknown'}")
            if status in ("queued", "in_progress"):
                logger.debug("Sora task %s: %s (%s%%)", task_id, status, poll_data.get("progress"))
                continue
            logger.warning("Sora unknown status: %s", status)

        raise RuntimeError(f"Sora task timed out after {poll_timeout}s")
    finally:
        if own_client:
            await client.aclose()
