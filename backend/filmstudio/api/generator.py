from __future__ import annotations
"""Generic asset generator endpoint."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.generation import AssetCreateRequest, AssetCreateResponse, GenerationRead
from filmstudio.services.generator import create_asset

router = APIRouter()


@router.post("/assets", response_model=AssetCreateResponse, status_code=201)
async def create_generation_asset(
    req: AssetCreateRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Estimate -> approve -> generate -> bill -> store.

    Returns 412 with the estimate when the cost needs approval and ``force``
    is not set.
    """
    try:
        generation, cost = await create_asset(
            db,
            project_id=req.project_id,
            user_id=user_id,
            prompt=req.prompt,
            model_id=req.model_id,
            shot_id=req.shot_id,
            force=req.force,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return AssetCreateResponse(generation=GenerationRead.model_validate(generation), cost=cost)
