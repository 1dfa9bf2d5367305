from __future__ import annotations
"""Media volume helpers — where generated assets and exports are written and served."""

import logging
import os
from urllib.parse import urlparse

import httpx
from PIL import Image, ImageDraw

from filmstudio.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def media_path(rel_path: str) -> str:
    """Absolute filesystem path of a file inside the media volume."""
    return os.path.join(settings.MEDIA_VOLUME, rel_path)


def media_url(rel_path: str) -> str:
    """Public URL of a media file (served by the /media static mount)."""
    return f"{settings.MEDIA_BASE_URL.rstrip('/')}/{rel_path.lstrip('/')}"


def rel_path_from_url(url: str) -> str | None:
    """Inverse of media_url; None for URLs outside the media volume."""
    base = settings.MEDIA_BASE_URL.rstrip("/") + "/"
    if url.startswith(base):
        return url[len(base):]
    return None


def local_source(url: str) -> str:
    """Path ffmpeg can read for a clip URL: local file if we host it, else the URL."""
    rel = rel_path_from_url(url)
    return media_path(rel) if rel is not None else url


def file_name_from_url(url: str | None, fallback: str) -> str:
    if not url:
        return fallback
    name = os.path.basename(urlparse(url).path)
    return name or fallback


def save_bytes(data: bytes, rel_path: str) -> str:
    full_path = media_path(rel_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, "wb") as f:
        f.write(data)
    return rel_path


def save_text(text: str, rel_path: str) -> str:
    return save_bytes(text.encode("utf-8"), rel_path)


async def download_to_media(
    url: str,
    rel_path: str,
    http_client: httpx.AsyncClient | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Stream a remote asset to disk, return its relative media path."""
    full_path = media_path(rel_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    client = http_client or httpx.AsyncClient(timeout=120.0, follow_redirects=True)
    own_client = http_client is None
    try:
        async with client.stream("GET", url, headers=headers) as response:
            response.raise_for_status()
            with open(full_path, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    f.write(chunk)
    finally:
        if own_client:
            await client.aclose()

    logger.info("Downloaded %s -> %s", url, rel_path)
    return rel_path


def write_placeholder_image(rel_path: str, caption: str) -> str:
    """Mock storyboard frame: dark 16:9 card with the prompt printed on it."""
    full_path = media_path(rel_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    img = Image.new("RGB", (1280, 720), color=(35, 35, 60))
    draw = ImageDraw.Draw(img)
    text = caption if len(caption) <= 100 else caption[:100] + "..."
    draw.text((40, 40), text, fill=(220, 220, 240))
    draw.text((40, 680), "[MOCK FRAME]", fill=(120, 120, 160))
    img.save(full_path, "PNG")
    return rel_path
