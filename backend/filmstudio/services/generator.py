"""Generic asset generator — the FinOps-guarded path for one-off images."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.models.generation import Generation
from filmstudio.services import director
from filmstudio.services.image_gen import generate_image
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import estimate_cost, validate_cost

logger = logging.getLogger(__name__)
settings = get_settings()


async def create_asset(
    db: AsyncSession,
    *,
    project_id: int,
    user_id: int,
    prompt: str,
    model_id: str | None = None,
    shot_id: int | None = None,
    force: bool = False,
) -> tuple[Generation, float]:
    """Estimate, guard, generate, bill, persist. Returns the row and its cost."""
    await director.require_project(db, project_id)
    if shot_id is not None:
        await director.require_project_shot(db, project_id, shot_id)

    model_id = model_id or settings.IMAGE_MODEL
    cost = estimate_cost(model_id, 1)
    validate_cost(cost, approved=force)

    image = await generate_image(prompt, project_id, model=model_id, prefix="asset")

    await log_usage(
        db,
        project_id=project_id,
        user_id=user_id,
        model_id=model_id,
        cost=cost,
        action_type=ActionType.IMAGE_GEN,
    )

    generation = Generation(
        project_id=project_id,
        shot_id=shot_id,
        image_url=image.url,
        prompt=prompt,
        model=model_id,
        cost=Decimal(str(cost)),
    )
    db.add(generation)
    await db.flush()
    await db.refresh(generation)
    logger.info("Asset %s created for project %s ($%.4f)", generation.id, project_id, cost)
    return generation, cost
