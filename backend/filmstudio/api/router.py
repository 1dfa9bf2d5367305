from __future__ import annotations
"""Master API router — mounts all sub-routers."""

from fastapi import APIRouter

from filmstudio.api.audio import router as audio_router
from filmstudio.api.brands import router as brands_router
from filmstudio.api.characters import router as characters_router
from filmstudio.api.director import router as director_router
from filmstudio.api.editor import router as editor_router
from filmstudio.api.finops import router as finops_router
from filmstudio.api.generator import router as generator_router
from filmstudio.api.metrics import router as metrics_router
from filmstudio.api.projects import router as projects_router
from filmstudio.api.script import router as script_router
from filmstudio.api.storyboard import router as storyboard_router
from filmstudio.api.system import router as system_router
from filmstudio.api.video import router as video_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(projects_router, prefix="/projects", tags=["Projects"])
api_router.include_router(characters_router, prefix="/projects/{project_id}/characters", tags=["Characters"])
api_router.include_router(script_router, prefix="/script", tags=["Script AI"])
api_router.include_router(director_router, prefix="/director", tags=["Director"])
api_router.include_router(storyboard_router, prefix="/storyboard", tags=["Storyboard"])
api_router.include_router(generator_router, prefix="/generator", tags=["Generator"])
api_router.include_router(finops_router, prefix="/finops", tags=["FinOps"])
api_router.include_router(video_router, prefix="/video", tags=["Video"])
api_router.include_router(editor_router, prefix="/editor", tags=["Editor"])
api_router.include_router(audio_router, prefix="/audio", tags=["Audio"])
api_router.include_router(brands_router, prefix="/brands", tags=["Brands"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["Metrics"])
api_router.include_router(system_router, prefix="/system", tags=["System"])
