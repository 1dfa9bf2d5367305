"""Audio generation — ElevenLabs dialogue and Replicate sound effects.

Both kinds are stored under ``{project_id}/audio/``, recorded as an
``AudioAsset`` row and billed to the usage ledger. In mock mode a silent
WAV is written instead of calling a provider.
"""

from __future__ import annotations

import logging
import os
import struct
import uuid
from typing import Any
from urllib.parse import urlparse

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.models.audio import AudioAsset, AudioType
from filmstudio.services import director, media
from filmstudio.services.base_gen_service import BaseGenService, GenServiceConfig
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import estimate_cost
from filmstudio.services.replicate_service import run_model

logger = logging.getLogger(__name__)
settings = get_settings()

TTS_MODEL_ID = "elevenlabs/tts"
SFX_MODEL_ID = "haoheliu/audioldm-2"
SFX_DURATION = 5.0
MOCK_TTS_DURATION = 2.0
LABEL_LENGTH = 50

_http_client: httpx.AsyncClient | None = None


def _get_http_client(timeout: float = 60.0) -> httpx.AsyncClient:
    """Return a module-level httpx.AsyncClient, creating it on first use."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=timeout)
    return _http_client


def silent_wav(seconds: float, sample_rate: int = 24000) -> bytes:
    """Mono 16-bit PCM WAV of silence."""
    num_channels = 1
    bits_per_sample = 16
    block_align = num_channels * bits_per_sample // 8
    data_size = int(sample_rate * seconds) * block_align
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        num_channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + b"\x00" * data_size


def wav_duration(audio_bytes: bytes) -> float | None:
    """Duration of a PCM WAV from its header; None if it is not one."""
    if len(audio_bytes) < 44 or audio_bytes[:4] != b"RIFF":
        return None
    try:
        num_channels = struct.unpack_from("<H", audio_bytes, 22)[0]
        sample_rate = struct.unpack_from("<I", audio_bytes, 24)[0]
        bits_per_sample = struct.unpack_from("<H", audio_bytes, 34)[0]
        data_size = struct.unpack_from("<I", audio_bytes, 40)[0]
        return data_size / (num_channels * (bits_per_sample // 8)) / sample_rate
    except (struct.error, ZeroDivisionError):
        return None


class TtsService(BaseGenService[tuple[str, float | None]]):
    """Dialogue synthesis; yields (relative path, seconds or None)."""

    service_name = "tts"

    def __init__(self) -> None:
        super().__init__(GenServiceConfig(max_retries=0, timeout=120.0))

    async def _generate(self, **kwargs: Any) -> tuple[str, float | None]:
        return await _synthesize_core(kwargs["text"], kwargs["voice_id"], kwargs["rel_stem"])

    def _estimate_cost(self, **kwargs: Any) -> float:
        return estimate_cost(TTS_MODEL_ID, 1)


class SfxService(BaseGenService[str]):
    service_name = "sfx"

    def __init__(self) -> None:
        super().__init__(GenServiceConfig(max_retries=0, timeout=300.0))

    async def _generate(self, **kwargs: Any) -> str:
        return await _sound_effect_core(kwargs["prompt"], kwargs["rel_stem"])

    def _estimate_cost(self, **kwargs: Any) -> float:
        return estimate_cost(SFX_MODEL_ID, 1)


_tts_service = TtsService()
_sfx_service = SfxService()


def get_tts_service() -> TtsService:
    return _tts_service


def get_sfx_service() -> SfxService:
    return _sfx_service


async def _synthesize_core(text: str, voice_id: str, rel_stem: str) -> tuple[str, float | None]:
    if settings.USE_MOCK_API:
        rel = media.save_bytes(silent_wav(MOCK_TTS_DURATION), f"{rel_stem}.wav")
        return rel, MOCK_TTS_DURATION

    if not settings.ELEVENLABS_API_KEY:
        raise ValueError("ELEVENLABS_API_KEY is not configured")

    response = await _get_http_client().post(
        f"{settings.ELEVENLABS_API_URL.rstrip('/')}/text-to-speech/{voice_id}",
        headers={
            "xi-api-key": settings.ELEVENLABS_API_KEY,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        },
        json={
            "text": text,
            "model_id": settings.ELEVENLABS_MODEL,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
        },
    )
    response.raise_for_status()
    audio_bytes = response.content
    rel = media.save_bytes(audio_bytes, f"{rel_stem}.mp3")
    logger.info("TTS audio saved: %s (%d bytes)", rel, len(audio_bytes))
    return rel, wav_duration(audio_bytes)


async def _sound_effect_core(prompt: str, rel_stem: str) -> str:
    if settings.USE_MOCK_API:
        return media.save_bytes(silent_wav(SFX_DURATION), f"{rel_stem}.wav")

    remote_url = await run_model(
        settings.SFX_MODEL,
        {
            "text": prompt,
            "duration_seconds": SFX_DURATION,
            "guidance_scale": 3.5,
            "n_candidates": 3,
        },
    )
    ext = os.path.splitext(urlparse(remote_url).path)[1] or ".wav"
    return await media.download_to_media(remote_url, f"{rel_stem}{ext}")


async def _require_scene_in_project(db: AsyncSession, project_id: int, scene_id: int | None) -> None:
    if scene_id is None:
        return
    scene = await director.require_scene(db, scene_id)
    if scene.project_id != project_id:
        raise ValueError(f"Scene {scene_id} does not belong to project {project_id}")


async def _store(
    db: AsyncSession,
    *,
    project_id: int,
    user_id: int,
    scene_id: int | None,
    audio_type: AudioType,
    rel_path: str,
    label: str,
    duration: float | None,
    model_id: str,
    action_type: str,
) -> AudioAsset:
    asset = AudioAsset(
        project_id=project_id,
        scene_id=scene_id,
        type=audio_type.value,
        url=media.media_url(rel_path),
        label=label,
        duration=duration,
        model_id=model_id,
    )
    db.add(asset)
    await db.flush()
    await db.refresh(asset)

    await log_usage(
        db,
        project_id=project_id,
        user_id=user_id,
        model_id=model_id,
        cost=estimate_cost(model_id, 1),
        action_type=action_type,
    )
    logger.info("%s audio %s for project %s", audio_type.value, asset.id, project_id)
    return asset


async def generate_tts(
    db: AsyncSession,
    project_id: int,
    user_id: int,
    text: str,
    voice_id: str | None = None,
    scene_id: int | None = None,
) -> AudioAsset:
    """Synthesize a line of dialogue and store it as a DIALOGUE asset."""
    await director.require_project(db, project_id)
    await _require_scene_in_project(db, project_id, scene_id)

    rel_stem = f"{project_id}/audio/dialogue_{uuid.uuid4().hex[:12]}"
    result = await _tts_service.execute(
        text=text, voice_id=voice_id or settings.DEFAULT_VOICE_ID, rel_stem=rel_stem
    )
    rel_path, duration = result.data
    return await _store(
        db,
        project_id=project_id,
        user_id=user_id,
        scene_id=scene_id,
        audio_type=AudioType.DIALOGUE,
        rel_path=rel_path,
        label=text[:LABEL_LENGTH],
        duration=duration,
        model_id=TTS_MODEL_ID,
        action_type=ActionType.VOICEOVER_GENERATION,
    )


async def generate_sfx(
    db: AsyncSession,
    project_id: int,
    user_id: int,
    prompt: str,
    scene_id: int | None = None,
) -> AudioAsset:
    """Generate a five-second sound effect and store it as an SFX asset."""
    await director.require_project(db, project_id)
    await _require_scene_in_project(db, project_id, scene_id)

    rel_stem = f"{project_id}/audio/sfx_{uuid.uuid4().hex[:12]}"
    result = await _sfx_service.execute(prompt=prompt, rel_stem=rel_stem)
    return await _store(
        db,
        project_id=project_id,
        user_id=user_id,
        scene_id=scene_id,
        audio_type=AudioType.SFX,
        rel_path=result.data,
        label=prompt[:255],
        duration=SFX_DURATION,
        model_id=SFX_MODEL_ID,
        action_type=ActionType.SFX_GENERATION,
    )


async def list_audio(
    db: AsyncSession, project_id: int, audio_type: AudioType | None = None
) -> list[AudioAsset]:
    query = select(AudioAsset).where(AudioAsset.project_id == project_id)
    if audio_type is not None:
        query = query.where(AudioAsset.type == audio_type.value)
    result = await db.execute(query.order_by(AudioAsset.id))
    return list(result.scalars().all())
