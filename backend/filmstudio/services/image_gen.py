from __future__ import annotations
"""Image generation service — storyboard frames via Replicate.

Generated images are copied into the media volume so URLs stay valid after
the provider's temporary links expire. In mock mode a placeholder frame is
drawn locally instead.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from filmstudio.config import get_settings
from filmstudio.services import media
from filmstudio.services.base_gen_service import BaseGenService, GenServiceConfig
from filmstudio.services.pricing import estimate_cost
from filmstudio.services.replicate_service import run_model

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class ImageResult:
    url: str
    rel_path: str
    model: str


class ImageGenService(BaseGenService[str]):
    """Single-shot storyboard image generation with metrics."""

    service_name = "image_gen"

    def __init__(self) -> None:
        super().__init__(GenServiceConfig(max_retries=0, timeout=180.0))

    async def _generate(self, **kwargs: Any) -> str:
        return await _generate_image_core(
            prompt=kwargs["prompt"],
            model=kwargs["model"],
            rel_stem=kwargs["rel_stem"],
        )

    def _estimate_cost(self, **kwargs: Any) -> float:
        return estimate_cost(kwargs["model"], 1)


_image_service = ImageGenService()


def get_image_service() -> ImageGenService:
    """Return the singleton ImageGenService for metrics access."""
    return _image_service


async def generate_image(
    prompt: str,
    project_id: int,
    *,
    model: str | None = None,
    prefix: str = "frame",
) -> ImageResult:
    """Generate one image and store it under ``{project_id}/images/``."""
    model = model or settings.IMAGE_MODEL
    rel_stem = f"{project_id}/images/{prefix}_{uuid.uuid4().hex[:12]}"
    result = await _image_service.execute(prompt=prompt, model=model, rel_stem=rel_stem)
    return ImageResult(url=media.media_url(result.data), rel_path=result.data, model=model)


async def _generate_image_core(prompt: str, model: str, rel_stem: str) -> str:
    if settings.USE_MOCK_API:
        return media.write_placeholder_image(f"{rel_stem}.png", prompt)

    remote_url = await run_model(
        model,
        {"prompt": prompt, "aspect_ratio": "16:9", "output_format": "png"},
    )
    ext = os.path.splitext(urlparse(remote_url).path)[1] or ".png"
    return await media.download_to_media(remote_url, f"{rel_stem}{ext}")
