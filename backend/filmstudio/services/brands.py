"""Brands — reusable identities that projects link to and prompts inherit.

A project linked to a brand takes its voice, palette and constraints from
the brand row; unlinked projects fall back to the ``brand`` key of their
bible.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.models.brand import Brand
from filmstudio.models.project import Project
from filmstudio.services.character_lock import BrandIdentity
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.llm_client import LLMError, llm_json_call

logger = logging.getLogger(__name__)
settings = get_settings()

INGESTION_MODEL_ID = "gemini-1.5-pro"
INGESTION_COST = 0.05

INGESTION_SYSTEM_PROMPT = """You are a Senior Brand Strategist. Your task is to extract a structured brand identity from documentation.

Focus on:
- Primary/Secondary Color Palette (Hex codes)
- Tone of Voice (Detailed communication style)
- Target Audience (Demographics and Psychographics)
- Negative Constraints (Brand taboos, strict off-brand elements)

Return a JSON object only, with the keys:
"colorPalette" (map of color roles such as primary, secondary, accent to hex codes),
"brandVoice", "targetAudience", "negativeConstraints"."""


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def list_brands(db: AsyncSession, user_id: int) -> list[Brand]:
    result = await db.execute(
        select(Brand).where(Brand.user_id == user_id).order_by(Brand.id)
    )
    return list(result.scalars().all())


async def get_brand(db: AsyncSession, brand_id: int, user_id: int) -> Brand:
    brand = await db.get(Brand, brand_id)
    if brand is None or brand.user_id != user_id:
        raise ValueError(f"Brand {brand_id} not found")
    return brand


async def create_brand(db: AsyncSession, user_id: int, data: dict[str, Any]) -> Brand:
    brand = Brand(user_id=user_id, **data)
    db.add(brand)
    await db.flush()
    await db.refresh(brand)
    logger.info("Created brand %s for user %s", brand.id, user_id)
    return brand


async def update_brand(
    db: AsyncSession, brand_id: int, user_id: int, data: dict[str, Any]
) -> Brand:
    brand = await get_brand(db, brand_id, user_id)
    for key, value in data.items():
        setattr(brand, key, value)
    await db.flush()
    await db.refresh(brand)
    return brand


async def delete_brand(db: AsyncSession, brand_id: int, user_id: int) -> None:
    """Delete a brand; linked projects keep existing, unlinked."""
    brand = await get_brand(db, brand_id, user_id)
    await db.execute(
        update(Project).where(Project.brand_id == brand_id).values(brand_id=None)
    )
    await db.delete(brand)
    await db.flush()


async def assign_brand(
    db: AsyncSession, project_id: int, brand_id: int | None, user_id: int
) -> Project:
    """Link a project to one of the user's brands, or unlink it with ``None``."""
    project = await db.get(Project, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")
    if brand_id is not None:
        await get_brand(db, brand_id, user_id)
    project.brand_id = brand_id
    await db.flush()
    await db.refresh(project)
    logger.info("Project %s brand set to %s", project_id, brand_id)
    return project


# ---------------------------------------------------------------------------
# Prompt context
# ---------------------------------------------------------------------------

def brand_context(brand: Brand) -> str:
    """Compact one-line brand DNA for prompt injection."""
    parts = [
        f"BRAND: {brand.name}",
        f"VOICE: {brand.brand_voice}" if brand.brand_voice else None,
        f"PALETTE: {json.dumps(brand.color_palette)}" if brand.color_palette else None,
        f"AVOID: {brand.negative_constraints}" if brand.negative_constraints else None,
        f"AESTHETIC: {brand.aesthetic}" if brand.aesthetic else None,
    ]
    return " | ".join(p for p in parts if p)


async def linked_brand(db: AsyncSession, project: Project) -> Brand | None:
    if project.brand_id is None:
        return None
    return await db.get(Brand, project.brand_id)


async def project_identity(db: AsyncSession, project: Project) -> BrandIdentity | None:
    """Brand identity for a project's prompts: linked brand first, then the bible."""
    brand = await linked_brand(db, project)
    if brand is not None:
        return BrandIdentity.from_brand(brand)
    return BrandIdentity.from_bible(project.bible)


async def inject_brand_directives(db: AsyncSession, project_id: int, prompt: str) -> str:
    """Wrap ``prompt`` in the linked brand's DNA; unchanged when there is none."""
    project = await db.get(Project, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")
    brand = await linked_brand(db, project)
    if brand is None:
        return prompt
    return (
        f"### BRAND_IDENTITY ###\n{brand_context(brand)}\n\n"
        f"### ORIGINAL_PROMPT ###\n{prompt}\n\n"
        "Maintain brand consistency above all."
    )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

def parse_identity(data: Any) -> dict[str, Any]:
    """Normalise the extraction JSON into brand column values.

    Raises:
        LLMError: The model did not return a JSON object.
    """
    if not isinstance(data, dict):
        raise LLMError("Brand extraction returned no usable identity")
    palette = data.get("colorPalette")
    return {
        "color_palette": palette if isinstance(palette, dict) else None,
        "brand_voice": data.get("brandVoice") or None,
        "target_customer": data.get("targetAudience") or None,
        "negative_constraints": data.get("negativeConstraints") or None,
    }


async def ingest_brand_identity(
    db: AsyncSession,
    brand_id: int,
    user_id: int,
    source_url: str,
    project_id: int | None = None,
) -> Brand:
    """Extract voice, palette, audience and taboos from a source document.

    The call is billed to ``project_id``, else to the first project linked to
    the brand; with neither it goes unbilled.
    """
    brand = await get_brand(db, brand_id, user_id)
    if project_id is not None and await db.get(Project, project_id) is None:
        raise ValueError(f"Project {project_id} not found")
    logger.info("Analyzing brand source for brand %s: %s", brand_id, source_url)

    if settings.USE_MOCK_API:
        data: Any = _mock_identity(brand.name)
    else:
        data = await llm_json_call(
            INGESTION_SYSTEM_PROMPT,
            f"Extract Brand Identity from this source: {source_url}",
            model=settings.BRAND_MODEL,
            temperature=0.2,
            caller="brand_ingestion",
        )

    for key, value in parse_identity(data).items():
        if value is not None:
            setattr(brand, key, value)
    await db.flush()
    await db.refresh(brand)

    if project_id is None:
        result = await db.execute(
            select(Project.id).where(Project.brand_id == brand_id).order_by(Project.id).limit(1)
        )
        project_id = result.scalar_one_or_none()
    if project_id is not None:
        await log_usage(
            db,
            project_id=project_id,
            user_id=user_id,
            model_id=INGESTION_MODEL_ID,
            cost=INGESTION_COST,
            action_type=ActionType.BRAND_INGESTION,
        )
    else:
        logger.info("Brand %s ingestion not billed: no linked project", brand_id)
    return brand


def _mock_identity(name: str) -> dict[str, Any]:
    return {
        "colorPalette": {"primary": "#0B3D91", "secondary": "#F2F2F2", "accent": "#FC3D21"},
        "brandVoice": f"{name} speaks plainly and with quiet confidence.",
        "targetAudience": "Urban professionals, 25-40, who value craft over hype.",
        "negativeConstraints": "No clip art, no neon gradients, no slapstick humour.",
    }
