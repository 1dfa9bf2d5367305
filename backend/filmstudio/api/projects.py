from __future__ import annotations
"""Project CRUD, Project Bible and script-lock endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_project_store, get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.project import (
    BibleUpdate,
    ExportXmlResponse,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    ScriptLockUpdate,
)
from filmstudio.services.export_service import export_project_xml
from filmstudio.services.project_store import ProjectStore

router = APIRouter()


async def _get_or_404(store: ProjectStore, project_id: int) -> Any:
    project = await store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/", response_model=list[ProjectRead])
async def list_projects(
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
):
    """List the acting user's projects, newest first."""
    return await store.list_projects(user_id)


@router.post("/", response_model=ProjectRead, status_code=201)
async def create_project(
    data: ProjectCreate,
    user_id: int = Depends(get_user_id),
    store: ProjectStore = Depends(get_project_store),
):
    return await store.create_project(user_id, data.name, data.bible)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(project_id: int, store: ProjectStore = Depends(get_project_store)):
    return await _get_or_404(store, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    store: ProjectStore = Depends(get_project_store),
):
    project = await _get_or_404(store, project_id)
    if data.name is None:
        return project
    return await store.rename_project(project_id, data.name)


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: int, store: ProjectStore = Depends(get_project_store)):
    if not await store.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")


@router.get("/{project_id}/bible")
async def get_bible(project_id: int, store: ProjectStore = Depends(get_project_store)):
    project = await _get_or_404(store, project_id)
    return project.bible or {}


@router.patch("/{project_id}/bible", response_model=ProjectRead)
async def update_bible(
    project_id: int,
    data: BibleUpdate,
    store: ProjectStore = Depends(get_project_store),
):
    """Merge top-level keys into the Project Bible."""
    await _get_or_404(store, project_id)
    return await store.update_bible(project_id, data.bible)


@router.post("/{project_id}/script-lock", response_model=ProjectRead)
async def set_script_lock(
    project_id: int,
    data: ScriptLockUpdate,
    store: ProjectStore = Depends(get_project_store),
):
    await _get_or_404(store, project_id)
    return await store.set_script_lock(project_id, data.locked)


@router.post("/{project_id}/export-xml", response_model=ExportXmlResponse)
async def export_xml(project_id: int, db: AsyncSession = Depends(get_db)):
    """Export the storyboard as an NLE timeline (xmeml v5)."""
    try:
        url, shot_count = await export_project_xml(db, project_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ExportXmlResponse(url=url, shot_count=shot_count)
