"""Replicate video provider — hosted text/image-to-video models (minimax/video-01 by default)."""

from __future__ import annotations

import base64
import logging

import replicate

from filmstudio.services.providers import VideoResult
from filmstudio.services.replicate_service import run_model

logger = logging.getLogger(__name__)


async def generate_video(
    *,
    prompt: str,
    model: str,
    image_bytes: bytes | None = None,
    image_mime: str = "image/png",
    duration: int | None = None,
    client: replicate.Client | None = None,
) -> VideoResult:
    """Run a Replicate video model; the first frame is sent as a data URI."""
    model_input: dict[str, object] = {"prompt": prompt, "prompt_optimizer": True}
    if image_bytes:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        model_input["first_frame_image"] = f"data:{image_mime};base64,{encoded}"

    video_url = await run_model(model, model_input, client=client)
    return VideoResult(
        video_url=video_url,
        provider="replicate",
        model=model,
        duration=duration,
    )
