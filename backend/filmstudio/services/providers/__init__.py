"""Video provider implementations.

Each provider module implements the async generation pattern:
  POST create task -> poll status -> return the finished video location.
Downloading into the media volume is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class VideoResult:
    video_url: str
    provider: str
    model: str
    task_id: str | None = None
    duration: int | None = None
    # Headers required to fetch video_url (e.g. authenticated content endpoints)
    download_headers: dict[str, str] = field(default_factory=dict)


PROVIDERS = ("veo3", "sora", "replicate")
