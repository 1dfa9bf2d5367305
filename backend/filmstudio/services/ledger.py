"""Usage ledger — records billable AI actions and aggregates spend per project."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.models.generation import UsageLedger

logger = logging.getLogger(__name__)


class ActionType:
    SYNOPSIS_GENERATION = "SYNOPSIS_GENERATION"
    SCRIPT_GENERATION = "SCRIPT_GENERATION"
    SCRIPT_REFINEMENT = "SCRIPT_REFINEMENT"
    VISUAL_STYLE = "VISUAL_STYLE"
    SCRIPT_ANALYSIS = "SCRIPT_ANALYSIS"
    SHOT_GENERATION = "SHOT_GENERATION"
    IMAGE_GEN = "IMAGE_GEN"
    VIDEO_GEN = "VIDEO_GEN"
    VOICEOVER_GENERATION = "VOICEOVER_GENERATION"
    SFX_GENERATION = "SFX_GENERATION"
    BRAND_INGESTION = "BRAND_INGESTION"


async def log_usage(
    db: AsyncSession,
    *,
    project_id: int,
    user_id: int,
    model_id: str,
    cost: float,
    action_type: str,
    quantity: int = 1,
) -> UsageLedger | None:
    """Insert a ledger row.

    Never raises: a failed ledger write must not fail the generation that
    produced the cost. The insert runs in a savepoint so a failure leaves the
    caller's transaction usable.
    """
    entry = UsageLedger(
        project_id=project_id,
        user_id=user_id,
        action_type=action_type,
        model_id=model_id,
        quantity=quantity,
        cost=Decimal(str(cost)),
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError as e:
        logger.error("Failed to log usage for project %s: %s", project_id, e)
        return None

    logger.info(
        "[Ledger] Logged: %s | $%.4f | Project: %s", action_type, cost, project_id
    )
    return entry


async def project_usage(db: AsyncSession, project_id: int) -> dict[str, Any]:
    """Total spend and per-action breakdown for a project."""
    result = await db.execute(
        select(
            UsageLedger.action_type,
            func.coalesce(func.sum(UsageLedger.quantity), 0),
            func.coalesce(func.sum(UsageLedger.cost), 0),
        )
        .where(UsageLedger.project_id == project_id)
        .group_by(UsageLedger.action_type)
        .order_by(UsageLedger.action_type)
    )
    breakdown = [
        {"action_type": action, "quantity": int(qty), "cost": round(float(cost), 4)}
        for action, qty, cost in result.all()
    ]
    total = round(sum(item["cost"] for item in breakdown), 4)
    return {"project_id": project_id, "total_cost": total, "breakdown": breakdown}


async def list_usage(db: AsyncSession, project_id: int, limit: int = 100) -> list[UsageLedger]:
    result = await db.execute(
        select(UsageLedger)
        .where(UsageLedger.project_id == project_id)
        .order_by(UsageLedger.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
