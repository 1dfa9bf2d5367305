"""Character roster and lock state — one locked character per project."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.models.character import Character
from filmstudio.models.project import Project
from filmstudio.services.character_lock import (
    BrandIdentity,
    CharacterLockConfig,
    LockedCharacter,
    lock_config_for,
)

logger = logging.getLogger(__name__)


async def list_characters(db: AsyncSession, project_id: int) -> list[Character]:
    result = await db.execute(
        select(Character).where(Character.project_id == project_id).order_by(Character.id)
    )
    return list(result.scalars().all())


async def get_character(db: AsyncSession, project_id: int, character_id: int) -> Character:
    character = await db.get(Character, character_id)
    if character is None or character.project_id != project_id:
        raise ValueError(f"Character {character_id} not found")
    return character


async def create_character(db: AsyncSession, project_id: int, data: dict[str, Any]) -> Character:
    if await db.get(Project, project_id) is None:
        raise ValueError(f"Project {project_id} not found")
    character = Character(project_id=project_id, is_locked=False, **data)
    db.add(character)
    await db.flush()
    await db.refresh(character)
    return character


async def update_character(
    db: AsyncSession, project_id: int, character_id: int, data: dict[str, Any]
) -> Character:
    character = await get_character(db, project_id, character_id)
    for key, value in data.items():
        setattr(character, key, value)
    await db.flush()
    await db.refresh(character)
    return character


async def delete_character(db: AsyncSession, project_id: int, character_id: int) -> None:
    character = await get_character(db, project_id, character_id)
    await db.delete(character)
    await db.flush()


async def lock_character(db: AsyncSession, project_id: int, character_id: int) -> Character:
    """Lock one character, unlocking any other in the project first."""
    character = await get_character(db, project_id, character_id)
    await db.execute(
        update(Character)
        .where(Character.project_id == project_id, Character.id != character_id)
        .values(is_locked=False)
    )
    character.is_locked = True
    await db.flush()
    await db.refresh(character)
    logger.info("Locked character %s for project %s", character_id, project_id)
    return character


async def unlock_all(db: AsyncSession, project_id: int) -> None:
    await db.execute(
        update(Character).where(Character.project_id == project_id).values(is_locked=False)
    )
    await db.flush()
    logger.info("Unlocked all characters for project %s", project_id)


async def get_locked_character(db: AsyncSession, project_id: int) -> Character | None:
    result = await db.execute(
        select(Character)
        .where(Character.project_id == project_id, Character.is_locked.is_(True))
        .limit(1)
    )
    return result.scalar_one_or_none()


def as_locked(character: Character) -> LockedCharacter:
    return LockedCharacter(
        name=character.name,
        description=character.description or "",
        image_url=character.image_url,
    )


def lock_config(
    character: Character,
    bible: dict[str, Any] | None,
    brand: BrandIdentity | None = None,
) -> CharacterLockConfig:
    return lock_config_for(
        character.id,
        character.image_url,
        character.description,
        character.product_reference_url,
        bible,
        brand,
    )
