from __future__ import annotations
"""Character-locked storyboard endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.storyboard import (
    FrameDescriptorResponse,
    LockPreviewRequest,
    LockPreviewResponse,
    StoryboardGenerateRequest,
    StoryboardGenerateResponse,
    VariationsRequest,
    VariationsResponse,
)
from filmstudio.services import storyboard

router = APIRouter()


@router.post("/generate", response_model=StoryboardGenerateResponse, status_code=201)
async def generate_storyboard_frame(
    req: StoryboardGenerateRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        frame = await storyboard.generate_frame(
            db,
            req.project_id,
            user_id,
            req.shot_description,
            shot_id=req.shot_id,
            force=req.force,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return StoryboardGenerateResponse(
        generation_id=frame.generation.id,
        image_url=frame.generation.image_url,
        prompt=frame.prompt,
        character_locked=frame.character_locked,
        brand_applied=frame.brand_applied,
        cost=frame.cost,
    )


@router.post("/variations", response_model=VariationsResponse)
async def storyboard_variations(req: VariationsRequest, db: AsyncSession = Depends(get_db)):
    """Prompt variations only; no images are generated."""
    try:
        prompts = await storyboard.variations(db, req.project_id, req.shot_description, req.count)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return VariationsResponse(prompts=prompts)


@router.get("/{project_id}/frame-descriptor", response_model=FrameDescriptorResponse)
async def frame_descriptor(project_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await storyboard.frame_descriptor(db, project_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/lock-preview", response_model=LockPreviewResponse)
async def lock_preview(req: LockPreviewRequest, db: AsyncSession = Depends(get_db)):
    """Show the full prompt the locked character would add to ``base_prompt``."""
    try:
        locked = await storyboard.lock_preview(db, req.project_id, req.base_prompt)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return LockPreviewResponse(**asdict(locked))
