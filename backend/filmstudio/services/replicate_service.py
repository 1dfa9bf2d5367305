"""Replicate client wrapper — runs hosted image and video models.

Model outputs come back as a URL, a list of URLs, or file objects exposing
``.url``; ``first_output_url`` flattens all three.
"""

from __future__ import annotations

import logging
from typing import Any

import replicate

from filmstudio.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_client: replicate.Client | None = None


def get_client() -> replicate.Client:
    global _client
    if _client is None:
        if not settings.REPLICATE_API_TOKEN:
            raise ValueError("REPLICATE_API_TOKEN is not configured")
        _client = replicate.Client(api_token=settings.REPLICATE_API_TOKEN)
    return _client


def first_output_url(output: Any) -> str:
    """Pull the first asset URL out of a model's output."""
    if isinstance(output, (list, tuple)):
        if not output:
            raise RuntimeError("Replicate returned an empty output list")
        output = output[0]
    url = getattr(output, "url", output)
    if callable(url):
        url = url()
    if not isinstance(url, str) or not url:
        raise RuntimeError(f"Replicate returned no usable URL: {output!r}")
    return url


async def run_model(
    model: str, model_input: dict[str, Any], client: replicate.Client | None = None
) -> str:
    """Run a Replicate model and return the URL of its first output."""
    client = client or get_client()
    logger.info("Replicate run model=%s", model)
    output = await client.async_run(model, input=model_input)
    url = first_output_url(output)
    logger.info("Replicate model=%s produced %s", model, url)
    return url
