from __future__ import annotations
"""Director endpoints — scene breakdown, shot lists and shot frames."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.generation import GenerationRead
from filmstudio.schemas.scene import (
    CreateScenesRequest,
    SceneCreate,
    SceneLayout,
    SceneRead,
    SceneUpdate,
    ShotImageRequest,
    ShotRead,
    ShotUpdate,
)
from filmstudio.services import director

router = APIRouter()


@router.get("/projects/{project_id}/scenes", response_model=list[SceneRead])
async def list_scenes(project_id: int, db: AsyncSession = Depends(get_db)):
    return await director.list_scenes(db, project_id)


@router.post("/projects/{project_id}/scenes", response_model=SceneRead, status_code=201)
async def create_scene(project_id: int, data: SceneCreate, db: AsyncSession = Depends(get_db)):
    """Add a scene by hand."""
    try:
        return await director.create_scene(db, project_id, data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/scenes", response_model=list[SceneRead], status_code=201)
async def create_scenes(
    req: CreateScenesRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Break the script into scenes with the AI writer."""
    try:
        await director.require_project(db, req.project_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        return await director.create_scenes(db, req.project_id, user_id, req.script)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/scenes/{scene_id}", response_model=SceneRead)
async def update_scene(scene_id: int, data: SceneUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await director.update_scene(db, scene_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/scenes/{scene_id}", status_code=204)
async def delete_scene(scene_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await director.delete_scene(db, scene_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/scenes/{scene_id}/shots", response_model=list[ShotRead])
async def get_shots(scene_id: int, db: AsyncSession = Depends(get_db)):
    """Shots of a scene, each with its latest frame."""
    try:
        return await director.get_shots(db, scene_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/scenes/{scene_id}/shots", response_model=list[ShotRead], status_code=201)
async def create_shot_list(
    scene_id: int,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Generate the technical shot list for a scene."""
    try:
        shots = await director.create_shot_list(db, scene_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [director.shot_to_dict(s, None) for s in shots]


@router.get("/projects/{project_id}/layout", response_model=list[SceneLayout])
async def production_layout(project_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await director.production_layout(db, project_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/shots/{shot_id}", response_model=ShotRead)
async def update_shot(shot_id: int, data: ShotUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await director.update_shot(db, shot_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/shots/{shot_id}/image", response_model=GenerationRead, status_code=201)
async def generate_shot_image(
    shot_id: int,
    req: ShotImageRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Render a storyboard frame from the shot's technical breakdown."""
    try:
        return await director.generate_shot_image(
            db, shot_id, user_id, visual_style=req.visual_style, force=req.force
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
