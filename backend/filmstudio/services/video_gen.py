from __future__ import annotations
"""Video generation service — dispatches to Sora, Veo3 or Replicate.

One call per request: provider errors surface as GenerationError. Finished
clips are copied into the media volume. In mock mode no provider is called
and a placeholder URL is returned.
"""

import logging
import uuid
from typing import Any

from filmstudio.config import get_settings
from filmstudio.services import media
from filmstudio.services.base_gen_service import BaseGenService, GenServiceConfig
from filmstudio.services.pricing import estimate_video_job
from filmstudio.services.providers import PROVIDERS, VideoResult
from filmstudio.services.providers import replicate_video, sora_video, veo3_video

logger = logging.getLogger(__name__)
settings = get_settings()


def provider_model(provider: str) -> str:
    if provider == "sora":
        return settings.SORA_MODEL
    if provider == "veo3":
        return settings.VEO3_MODEL
    if provider == "replicate":
        return settings.REPLICATE_VIDEO_MODEL
    raise ValueError(f"Unknown video provider '{provider}'")


class VideoGenService(BaseGenService[VideoResult]):
    """Single-shot video generation with metrics."""

    service_name = "video_gen"

    def __init__(self) -> None:
        super().__init__(GenServiceConfig(max_retries=0, timeout=960.0))

    async def _generate(self, **kwargs: Any) -> VideoResult:
        return await _generate_video_core(**kwargs)

    def _estimate_cost(self, **kwargs: Any) -> float:
        return estimate_video_job(
            kwargs["provider"], kwargs.get("duration", 4), kwargs.get("resolution", "720p")
        )


_video_service = VideoGenService()


def get_video_service() -> VideoGenService:
    """Return the singleton VideoGenService for metrics access."""
    return _video_service


async def generate_video(
    *,
    provider: str,
    prompt: str,
    project_id: int,
    image_bytes: bytes | None = None,
    image_mime: str = "image/png",
    duration: int = 4,
    resolution: str = "720p",
) -> VideoResult:
    """Generate a clip and store it under ``{project_id}/videos/``.

    The returned result's ``video_url`` points at the media volume copy.
    """
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown video provider '{provider}'")

    result = await _video_service.execute(
        provider=provider,
        prompt=prompt,
        image_bytes=image_bytes,
        image_mime=image_mime,
        duration=duration,
        resolution=resolution,
    )
    video = result.data
    if settings.USE_MOCK_API:
        return video

    rel_path = f"{project_id}/videos/{provider}_{uuid.uuid4().hex[:12]}.mp4"
    await media.download_to_media(video.video_url, rel_path, headers=video.download_headers or None)
    video.video_url = media.media_url(rel_path)
    video.download_headers = {}
    return video


async def _generate_video_core(
    *,
    provider: str,
    prompt: str,
    image_bytes: bytes | None,
    image_mime: str,
    duration: int,
    resolution: str,
) -> VideoResult:
    model = provider_model(provider)

    if settings.USE_MOCK_API:
        task_id = f"mock-{uuid.uuid4().hex[:8]}"
        logger.info("Mock %s video task %s", provider, task_id)
        return VideoResult(
            video_url=media.media_url(f"mock/{provider}_{task_id}.mp4"),
            provider=provider,
            model=model,
            task_id=task_id,
            duration=duration,
        )

    if provider == "sora":
        return await sora_video.generate_video(
            prompt=prompt,
            model=model,
            api_key=settings.SORA_API_KEY,
            base_url=settings.SORA_API_URL,
            image_bytes=image_bytes,
            image_mime=image_mime,
            duration=duration,
            resolution=resolution,
        )
    if provider == "veo3":
        return await veo3_video.generate_video(
            prompt=prompt,
            model=model,
            api_key=settings.VEO3_API_KEY,
            base_url=settings.VEO3_API_URL,
            image_bytes=image_bytes,
            image_mime=image_mime,
            duration=duration,
            resolution=resolution,
        )
    return await replicate_video.generate_video(
        prompt=prompt,
        model=model,
        image_bytes=image_bytes,
        image_mime=image_mime,
        duration=duration,
    )
