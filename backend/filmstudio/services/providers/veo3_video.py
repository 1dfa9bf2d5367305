"""Veo 3 video generation provider (Gemini API long-running operations).

predictLongRunning returns an operation name that is polled until done;
the finished sample is a file URI fetched with the same API key.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import httpx

from filmstudio.services.providers import VideoResult

logger = logging.getLogger(__name__)


def build_request(
    prompt: str,
    image_bytes: bytes | None,
    image_mime: str,
    duration: int,
    resolution: str,
    aspect_ratio: str,
) -> dict[str, Any]:
    instance: dict[str, Any] = {"prompt": prompt}
    if image_bytes:
        instance["image"] = {
            "bytesBase64Encoded": base64.b64encode(image_bytes).decode("ascii"),
            "mimeType": image_mime,
        }
    return {
        "instances": [instance],
        "parameters": {
            "aspectRatio": aspect_ratio,
            "durationSeconds": duration,
            "resolution": resolution,
        },
    }


def extract_video_uri(operation: dict[str, Any]) -> str:
    response = operation.get("response") or {}
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    for sample in samples:
        uri = (sample.get("video") or {}).get("uri")
        if uri:
            return uri
    raise RuntimeError("Veo3: operation finished without a video")


async def generate_video(
    *,
    prompt: str,
    model: str,
    api_key: str,
    base_url: str,
    image_bytes: bytes | None = None,
    image_mime: str = "image/png",
    duration: int = 8,
    resolution: str = "720p",
    aspect_ratio: str = "16:9",
    http_client: httpx.AsyncClient | None = None,
    poll_interval: float = 10,
    poll_timeout: float = 600,
) -> VideoResult:
    """Generate a clip with Veo 3, image-to-video when a frame is given."""
    if not api_key:
        raise ValueError("Veo3 API key is required")

    endpoint = base_url.rstrip("/")
    headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
    body = build_request(prompt, image_bytes, image_mime, duration, resolution, aspect_ratio)

    client = http_client or httpx.AsyncClient(timeout=60.0)
    own_client = http_client is None

    try:
        resp = await client.post(
            f"{endpoint}/models/{model}:predictLongRunning", json=body, headers=headers,
        )
        resp.raise_for_status()
        operation = resp.json()
        operation_name = operation.get("name")
        if not operation_name:
            raise RuntimeError(f"Veo3 did not return an operation: {operation}")

        logger.info("Veo3 operation started: %s (model=%s)", operation_name, model)

        elapsed = 0.0
        while not operation.get("done"):
            if elapsed >= poll_timeout:
                raise RuntimeError(f"Veo3 timed out after {poll_timeout}s")
            await asyncio.sleep(poll_interval)
            elapsed += poll_interval

            poll_resp = await client.get(f"{endpoint}/{operation_name}", headers=headers)
            poll_resp.raise_for_status()
            operation = poll_resp.json()

            if operation.get("error"):
                raise RuntimeError(
                    f"Veo3 failed: {operation['error'].get('message', 'unknown')}"
                )
            logger.debug("Veo3 operation %s: polling", operation_name)

        return VideoResult(
            video_url=extract_video_uri(operation),
            provider="veo3",
            model=model,
            task_id=operation_name,
            duration=duration,
            download_headers={"x-goog-api-key": api_key},
        )
    finally:
        if own_client:
            await client.aclose()
