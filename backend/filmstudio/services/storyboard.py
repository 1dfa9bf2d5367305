"""Storyboard frames generated under the project's character and brand lock."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.models.generation import Generation
from filmstudio.models.scene import ShotStatus
from filmstudio.services import brands, characters, director
from filmstudio.services.character_lock import (
    BrandIdentity,
    LockedCharacter,
    LockedGenerationPrompt,
    build_frame_descriptor,
    build_locked_prompt,
    build_shot_prompt,
    build_variation_prompts,
)
from filmstudio.services.image_gen import generate_image
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import estimate_cost, validate_cost

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class StoryboardFrame:
    generation: Generation
    prompt: str
    character_locked: bool
    brand_applied: bool
    cost: float


async def _lock_context(
    db: AsyncSession, project_id: int
) -> tuple[dict[str, Any], LockedCharacter | None, BrandIdentity | None]:
    project = await director.require_project(db, project_id)
    bible = project.bible or {}
    locked = await characters.get_locked_character(db, project_id)
    character = characters.as_locked(locked) if locked is not None else None
    return bible, character, await brands.project_identity(db, project)


async def generate_frame(
    db: AsyncSession,
    project_id: int,
    user_id: int,
    shot_description: str,
    shot_id: int | None = None,
    force: bool = False,
    model: str | None = None,
) -> StoryboardFrame:
    """Generate one storyboard frame with the lock sections baked into the prompt."""
    _, character, brand = await _lock_context(db, project_id)
    shot = None
    if shot_id is not None:
        shot = await director.require_project_shot(db, project_id, shot_id)

    prompt = build_shot_prompt(shot_description, character, brand)

    model = model or settings.IMAGE_MODEL
    cost = estimate_cost(model, 1)
    validate_cost(cost, approved=force)

    image = await generate_image(prompt, project_id, model=model, prefix="storyboard")
    generation = Generation(
        project_id=project_id,
        shot_id=shot_id,
        image_url=image.url,
        prompt=prompt,
        model=image.model,
        cost=Decimal(str(cost)),
    )
    db.add(generation)
    if shot is not None:
        shot.status = ShotStatus.GENERATED.value
    await db.flush()
    await db.refresh(generation)

    await log_usage(
        db,
        project_id=project_id,
        user_id=user_id,
        model_id=image.model,
        cost=cost,
        action_type=ActionType.IMAGE_GEN,
    )
    logger.info(
        "Storyboard frame %s for project %s (locked=%s, brand=%s)",
        generation.id, project_id, character is not None, brand is not None,
    )
    return StoryboardFrame(
        generation=generation,
        prompt=prompt,
        character_locked=character is not None,
        brand_applied=brand is not None,
        cost=cost,
    )


async def variations(
    db: AsyncSession, project_id: int, shot_description: str, count: int = 3
) -> list[str]:
    _, character, brand = await _lock_context(db, project_id)
    return build_variation_prompts(shot_description, count, character, brand)


async def frame_descriptor(db: AsyncSession, project_id: int) -> dict[str, Any]:
    _, character, brand = await _lock_context(db, project_id)
    return build_frame_descriptor(character, brand)


async def lock_preview(
    db: AsyncSession, project_id: int, base_prompt: str
) -> LockedGenerationPrompt:
    """The locked prompt the project's locked character would produce."""
    bible, _, brand = await _lock_context(db, project_id)
    locked = await characters.get_locked_character(db, project_id)
    if locked is None:
        raise ValueError(f"Project {project_id} has no locked character")
    return build_locked_prompt(base_prompt, characters.lock_config(locked, bible, brand))
