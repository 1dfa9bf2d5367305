from __future__ import annotations
"""Script writer endpoints — results are stored in the Project Bible."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_project_store, get_user_id
from filmstudio.config import get_settings
from filmstudio.database import get_db
from filmstudio.schemas.script import (
    RefineRequest,
    ScriptRequest,
    ScriptTextResponse,
    SynopsisRequest,
    VisualStyleRequest,
)
from filmstudio.services import script_writer
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import estimate_cost
from filmstudio.services.project_store import ProjectStore

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()


async def _load(store: ProjectStore, project_id: int, *, writable: bool = False) -> Any:
    project = await store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if writable and project.is_script_locked:
        raise HTTPException(status_code=409, detail="Script is locked")
    return project


async def _bill(db: AsyncSession, project_id: int, user_id: int, action_type: str) -> None:
    await log_usage(
        db,
        project_id=project_id,
        user_id=user_id,
        model_id=settings.STORY_MODEL,
        cost=estimate_cost(settings.STORY_MODEL, 1),
        action_type=action_type,
    )


@router.post("/synopsis", response_model=ScriptTextResponse)
async def generate_synopsis(
    req: SynopsisRequest,
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
    db: AsyncSession = Depends(get_db),
):
    project = await _load(store, req.project_id)
    bible = project.bible or {}
    notes = req.director_notes or bible.get("director_notes")
    synopsis = await script_writer.generate_synopsis(req.brief, notes, bible.get("style"))

    await store.update_bible(req.project_id, {"brief": req.brief, "synopsis": synopsis})
    await _bill(db, req.project_id, user_id, ActionType.SYNOPSIS_GENERATION)
    return ScriptTextResponse(project_id=req.project_id, content=synopsis)


@router.post("/generate", response_model=ScriptTextResponse)
async def generate_script(
    req: ScriptRequest,
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
    db: AsyncSession = Depends(get_db),
):
    """Write the screenplay from a synopsis, else from a brief (request or bible)."""
    project = await _load(store, req.project_id, writable=True)
    bible = project.bible or {}
    try:
        script = await script_writer.generate_script(
            synopsis=req.synopsis,
            brief=req.brief or (None if req.synopsis else bible.get("brief")),
            director_notes=req.director_notes or bible.get("director_notes"),
            style=bible.get("style"),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await store.update_bible(req.project_id, {"script": script})
    await _bill(db, req.project_id, user_id, ActionType.SCRIPT_GENERATION)
    return ScriptTextResponse(project_id=req.project_id, content=script)


@router.post("/refine", response_model=ScriptTextResponse)
async def refine_script(
    req: RefineRequest,
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
    db: AsyncSession = Depends(get_db),
):
    project = await _load(store, req.project_id, writable=True)
    bible = project.bible or {}
    script = req.script or bible.get("script")
    if not script:
        raise HTTPException(status_code=400, detail="No script to refine")

    refined = await script_writer.refine_script(
        script, req.notes, req.director_notes or bible.get("director_notes"), bible.get("style")
    )
    await store.update_bible(req.project_id, {"script": refined})
    await _bill(db, req.project_id, user_id, ActionType.SCRIPT_REFINEMENT)
    return ScriptTextResponse(project_id=req.project_id, content=refined)


@router.post("/visual-style", response_model=ScriptTextResponse)
async def generate_visual_style(
    req: VisualStyleRequest,
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
    db: AsyncSession = Depends(get_db),
):
    project = await _load(store, req.project_id)
    bible = project.bible or {}
    if not bible.get("script"):
        raise HTTPException(status_code=400, detail="Project has no script yet")

    visual_style = await script_writer.generate_visual_style(
        bible["script"], bible.get("director_notes"), bible.get("style")
    )
    await store.update_bible(req.project_id, {"visual_style": visual_style})
    await _bill(db, req.project_id, user_id, ActionType.VISUAL_STYLE)
    return ScriptTextResponse(project_id=req.project_id, content=visual_style)
