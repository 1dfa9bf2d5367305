from __future__ import annotations
"""Audio endpoints — dialogue (TTS) and sound effects."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.models.audio import AudioType
from filmstudio.schemas.audio import AudioAssetRead, SfxRequest, TtsRequest
from filmstudio.services import audio

router = APIRouter()


@router.post("/tts", response_model=AudioAssetRead, status_code=201)
async def generate_tts(
    req: TtsRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Synthesize a dialogue line with ElevenLabs."""
    try:
        return await audio.generate_tts(
            db, req.project_id, user_id, req.text, req.voice_id, req.scene_id
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sfx", response_model=AudioAssetRead, status_code=201)
async def generate_sfx(
    req: SfxRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await audio.generate_sfx(db, req.project_id, user_id, req.prompt, req.scene_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/projects/{project_id}", response_model=list[AudioAssetRead])
async def list_audio(
    project_id: int, type: AudioType | None = None, db: AsyncSession = Depends(get_db)
):
    return await audio.list_audio(db, project_id, type)
