from __future__ import annotations
"""Character CRUD and lock endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.database import get_db
from filmstudio.schemas.character import CharacterCreate, CharacterRead, CharacterUpdate
from filmstudio.services import characters

router = APIRouter()


@router.get("/", response_model=list[CharacterRead])
async def list_characters(project_id: int, db: AsyncSession = Depends(get_db)):
    """List all characters for a project."""
    return await characters.list_characters(db, project_id)


@router.post("/", response_model=CharacterRead, status_code=201)
async def create_character(
    project_id: int, data: CharacterCreate, db: AsyncSession = Depends(get_db)
):
    try:
        return await characters.create_character(db, project_id, data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/locked", response_model=CharacterRead | None)
async def get_locked(project_id: int, db: AsyncSession = Depends(get_db)):
    """The project's locked character, or null."""
    return await characters.get_locked_character(db, project_id)


@router.post("/unlock", status_code=204)
async def unlock_all(project_id: int, db: AsyncSession = Depends(get_db)):
    await characters.unlock_all(db, project_id)


@router.get("/{character_id}", response_model=CharacterRead)
async def get_character(project_id: int, character_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await characters.get_character(db, project_id, character_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Character not found")


@router.patch("/{character_id}", response_model=CharacterRead)
async def update_character(
    project_id: int,
    character_id: int,
    data: CharacterUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await characters.update_character(
            db, project_id, character_id, data.model_dump(exclude_unset=True)
        )
    except ValueError:
        raise HTTPException(status_code=404, detail="Character not found")


@router.delete("/{character_id}", status_code=204)
async def delete_character(
    project_id: int, character_id: int, db: AsyncSession = Depends(get_db)
):
    try:
        await characters.delete_character(db, project_id, character_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Character not found")


@router.post("/{character_id}/lock", response_model=CharacterRead)
async def lock_character(
    project_id: int, character_id: int, db: AsyncSession = Depends(get_db)
):
    """Lock this character; any other locked character in the project is released."""
    try:
        return await characters.lock_character(db, project_id, character_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Character not found")
