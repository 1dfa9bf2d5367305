"""Director service — turns a locked script into scenes and technical shot lists.

Both breakdowns are billed per item through the usage ledger. Shot images are
rendered from a shot's technical fields plus the project's visual style, with
the character lock applied when one is active.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from filmstudio.config import get_settings
from filmstudio.models.generation import Generation
from filmstudio.models.project import Project
from filmstudio.models.scene import Scene, SceneStatus, Shot, ShotStatus
from filmstudio.services import brands, characters, script_writer
from filmstudio.services.character_lock import (
    brand_constraints_text,
    build_locked_prompt,
)
from filmstudio.services.image_gen import generate_image
from filmstudio.services.ledger import ActionType, log_usage
from filmstudio.services.pricing import (
    SCRIPT_ANALYSIS_COST,
    SHOT_BREAKDOWN_COST,
    SHOT_IMAGE_COST,
    validate_cost,
)

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_VISUAL_STYLE = "Cinematic film still, high quality."

# column name -> max length
_SHOT_COLUMN_LIMITS = {"camera_angle": 100, "movement": 100, "lighting": 255, "lens": 100}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def require_project(db: AsyncSession, project_id: int) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")
    return project


async def require_scene(db: AsyncSession, scene_id: int) -> Scene:
    scene = await db.get(Scene, scene_id)
    if scene is None:
        raise ValueError(f"Scene {scene_id} not found")
    return scene


async def require_shot(db: AsyncSession, shot_id: int) -> Shot:
    shot = await db.get(Shot, shot_id)
    if shot is None:
        raise ValueError(f"Shot {shot_id} not found")
    return shot


async def require_project_shot(db: AsyncSession, project_id: int, shot_id: int) -> Shot:
    """A shot that lives under one of ``project_id``'s scenes."""
    shot = await require_shot(db, shot_id)
    scene = await require_scene(db, shot.scene_id)
    if scene.project_id != project_id:
        raise ValueError(f"Shot {shot_id} does not belong to project {project_id}")
    return shot


# ---------------------------------------------------------------------------
# Scenes
# ---------------------------------------------------------------------------

async def list_scenes(db: AsyncSession, project_id: int) -> list[Scene]:
    result = await db.execute(
        select(Scene).where(Scene.project_id == project_id).order_by(Scene.order, Scene.id)
    )
    return list(result.scalars().all())


async def _next_scene_order(db: AsyncSession, project_id: int) -> int:
    result = await db.execute(
        select(func.max(Scene.order)).where(Scene.project_id == project_id)
    )
    return (result.scalar() or 0) + 1


async def create_scene(db: AsyncSession, project_id: int, data: dict[str, Any]) -> Scene:
    await require_project(db, project_id)
    order = data.pop("order", None)
    if order is None:
        order = await _next_scene_order(db, project_id)
    scene = Scene(project_id=project_id, order=order, status=SceneStatus.DRAFT.value, **data)
    db.add(scene)
    await db.flush()
    await db.refresh(scene)
    return scene


async def update_scene(db: AsyncSession, scene_id: int, data: dict[str, Any]) -> Scene:
    scene = await require_scene(db, scene_id)
    for key, value in data.items():
        if key == "status" and value is not None:
            value = SceneStatus(value).value
        setattr(scene, key, value)
    await db.flush()
    await db.refresh(scene)
    return scene


async def delete_scene(db: AsyncSession, scene_id: int) -> None:
    scene = await require_scene(db, scene_id)
    await db.delete(scene)
    await db.flush()


async def create_scenes(
    db: AsyncSession, project_id: int, user_id: int, script: str | None = None
) -> list[Scene]:
    """AI scene breakdown, appended after the project's existing scenes.

    ``script`` defaults to the script stored in the project bible.
    """
    project = await require_project(db, project_id)
    bible = project.bible or {}
    script = script or bible.get("script")
    if not script:
        raise ValueError("No script to break down")

    breakdown = await script_writer.break_script_into_scenes(script, bible.get("style"))
    if not breakdown:
        logger.warning("Scene breakdown for project %s returned nothing", project_id)
        return []

    start = await _next_scene_order(db, project_id)
    scenes = []
    for offset, item in enumerate(breakdown):
        scene = Scene(
            project_id=project_id,
            order=start + offset,
            title=(item.get("title") or "")[:255] or None,
            description=item.get("description"),
            status=SceneStatus.DRAFT.value,
        )
        db.add(scene)
        scenes.append(scene)
    await db.flush()

    await log_usage(
        db,
        project_id=project_id,
        user_id=user_id,
        model_id=settings.STORY_MODEL,
        cost=round(SCRIPT_ANALYSIS_COST * len(scenes), 4),
        action_type=ActionType.SCRIPT_ANALYSIS,
        quantity=len(scenes),
    )
    logger.info("Created %d scenes for project %s", len(scenes), project_id)
    return scenes


# ---------------------------------------------------------------------------
# Shots
# ---------------------------------------------------------------------------

def _clip(value: str | None, column: str) -> str | None:
    if value is None:
        return None
    return value[:_SHOT_COLUMN_LIMITS[column]]


def shot_from_breakdown(scene_id: int, order: int, item: dict[str, Any]) -> Shot:
    return Shot(
        scene_id=scene_id,
        order=order,
        visual_description=item.get("action"),
        audio_description=item.get("audio"),
        camera_angle=_clip(item.get("shot_type"), "camera_angle"),
        movement=_clip(item.get("movement"), "movement"),
        lighting=_clip(item.get("lighting"), "lighting"),
        lens=_clip(item.get("technique"), "lens"),
        status=ShotStatus.PLANNED.value,
    )


async def create_shot_list(db: AsyncSession, scene_id: int, user_id: int) -> list[Shot]:
    scene = await require_scene(db, scene_id)
    project = await require_project(db, scene.project_id)
    bible = project.bible or {}

    brand = await brands.project_identity(db, project)
    scene_context = f"{scene.title or ''}\n{scene.description or ''}".strip()
    breakdown = await script_writer.generate_shot_list(
        scene_context,
        visual_style=bible.get("visual_style"),
        director_notes=bible.get("director_notes"),
        brand_context=brand_constraints_text(brand) if brand else None,
        style=bible.get("style"),
    )
    if not breakdown:
        logger.warning("Shot breakdown for scene %s returned nothing", scene_id)
        return []

    result = await db.execute(select(func.max(Shot.order)).where(Shot.scene_id == scene_id))
    start = (result.scalar() or 0) + 1
    shots = [shot_from_breakdown(scene_id, start + i, item) for i, item in enumerate(breakdown)]
    db.add_all(shots)
    await db.flush()

    await log_usage(
        db,
        project_id=project.id,
        user_id=user_id,
        model_id=settings.STORY_MODEL,
        cost=round(SHOT_BREAKDOWN_COST * len(shots), 4),
        action_type=ActionType.SHOT_GENERATION,
        quantity=len(shots),
    )
    logger.info("Created %d shots for scene %s", len(shots), scene_id)
    return shots


async def latest_images(db: AsyncSession, shot_ids: list[int]) -> dict[int, str]:
    """Map shot id -> image URL of its newest generation."""
    if not shot_ids:
        return {}
    newest = (
        select(Generation.shot_id, func.max(Generation.id).label("gen_id"))
        .where(Generation.shot_id.in_(shot_ids))
        .group_by(Generation.shot_id)
        .subquery()
    )
    result = await db.execute(
        select(Generation.shot_id, Generation.image_url).join(
            newest, Generation.id == newest.c.gen_id
        )
    )
    return {shot_id: url for shot_id, url in result.all()}


def shot_to_dict(shot: Shot, image_url: str | None) -> dict[str, Any]:
    return {
        "id": shot.id,
        "scene_id": shot.scene_id,
        "order": shot.order,
        "visual_description": shot.visual_description,
        "audio_description": shot.audio_description,
        "camera_angle": shot.camera_angle,
        "movement": shot.movement,
        "lighting": shot.lighting,
        "lens": shot.lens,
        "status": shot.status,
        "image_url": image_url,
    }


async def get_shots(db: AsyncSession, scene_id: int) -> list[dict[str, Any]]:
    await require_scene(db, scene_id)
    result = await db.execute(
        select(Shot).where(Shot.scene_id == scene_id).order_by(Shot.order, Shot.id)
    )
    shots = list(result.scalars().all())
    images = await latest_images(db, [s.id for s in shots])
    return [shot_to_dict(s, images.get(s.id)) for s in shots]


async def production_layout(db: AsyncSession, project_id: int) -> list[dict[str, Any]]:
    """Scene tree for the production board: scenes, their shots, latest frames."""
    await require_project(db, project_id)
    result = await db.execute(
        select(Scene)
        .where(Scene.project_id == project_id)
        .options(selectinload(Scene.shots))
        .order_by(Scene.order, Scene.id)
    )
    scenes = list(result.scalars().all())
    images = await latest_images(db, [shot.id for scene in scenes for shot in scene.shots])
    return [
        {
            "id": scene.id,
            "project_id": scene.project_id,
            "order": scene.order,
            "title": scene.title,
            "description": scene.description,
            "status": scene.status,
            "shots": [shot_to_dict(shot, images.get(shot.id)) for shot in scene.shots],
        }
        for scene in scenes
    ]


async def project_shots(db: AsyncSession, project_id: int) -> list[Shot]:
    """All shots of a project in storyboard order."""
    result = await db.execute(
        select(Shot)
        .join(Scene, Shot.scene_id == Scene.id)
        .where(Scene.project_id == project_id)
        .order_by(Scene.order, Scene.id, Shot.order, Shot.id)
    )
    return list(result.scalars().all())


async def update_shot(db: AsyncSession, shot_id: int, data: dict[str, Any]) -> dict[str, Any]:
    shot = await require_shot(db, shot_id)
    for key, value in data.items():
        if key == "status" and value is not None:
            value = ShotStatus(value).value
        setattr(shot, key, value)
    await db.flush()
    await db.refresh(shot)
    images = await latest_images(db, [shot.id])
    return shot_to_dict(shot, images.get(shot.id))


def build_shot_image_prompt(shot: Shot, visual_style: str | None) -> str:
    return (
        f"{visual_style or DEFAULT_VISUAL_STYLE}\n"
        f"{shot.camera_angle or 'Medium Shot'}, {shot.movement or 'Static'}. "
        f"{shot.visual_description or 'Action'}. "
        f"Lens: {shot.lens or 'Cinematic'}. Lighting: {shot.lighting or 'Natural'}."
    )


async def generate_shot_image(
    db: AsyncSession,
    shot_id: int,
    user_id: int,
    visual_style: str | None = None,
    force: bool = False,
) -> Generation:
    shot = await require_shot(db, shot_id)
    scene = await require_scene(db, shot.scene_id)
    project = await require_project(db, scene.project_id)
    bible = project.bible or {}

    prompt = build_shot_image_prompt(shot, visual_style or bible.get("visual_style"))
    locked = await characters.get_locked_character(db, project.id)
    if locked is not None:
        brand = await brands.project_identity(db, project)
        prompt = build_locked_prompt(prompt, characters.lock_config(locked, bible, brand)).full_prompt

    validate_cost(SHOT_IMAGE_COST, approved=force)
    image = await generate_image(prompt, project.id, prefix=f"shot{shot.id}")

    generation = Generation(
        project_id=project.id,
        shot_id=shot.id,
        image_url=image.url,
        prompt=prompt,
        model=image.model,
        cost=Decimal(str(SHOT_IMAGE_COST)),
    )
    db.add(generation)
    shot.status = ShotStatus.GENERATED.value
    await db.flush()
    await db.refresh(generation)

    await log_usage(
        db,
        project_id=project.id,
        user_id=user_id,
        model_id=image.model,
        cost=SHOT_IMAGE_COST,
        action_type=ActionType.IMAGE_GEN,
    )
    logger.info("Generated image for shot %s (generation %s)", shot.id, generation.id)
    return generation
