from __future__ import annotations
"""Metrics API — generation service usage statistics."""

from fastapi import APIRouter

from filmstudio.services.audio import get_sfx_service, get_tts_service
from filmstudio.services.base_gen_service import BaseGenService
from filmstudio.services.image_gen import get_image_service
from filmstudio.services.video_gen import get_video_service

router = APIRouter()

_service_instances: dict[str, BaseGenService] = {}


def register_service(service: BaseGenService) -> None:
    """Register a generation service instance for metrics tracking."""
    _service_instances[service.service_name] = service


register_service(get_image_service())
register_service(get_video_service())
register_service(get_tts_service())
register_service(get_sfx_service())


@router.get("/generation")
async def generation_metrics():
    """Return usage statistics for all registered generation services."""
    return {"services": [svc.get_metrics() for svc in _service_instances.values()]}
