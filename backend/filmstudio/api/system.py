"""System status endpoints — mock mode and LLM key health."""

from __future__ import annotations

from fastapi import APIRouter

from filmstudio.config import get_settings
from filmstudio.services.llm_client import check_llm_health

router = APIRouter()
settings = get_settings()


@router.get("/dev-mode")
async def dev_mode():
    """Whether external AI calls are replaced by mocks."""
    return {
        "mock_mode": settings.USE_MOCK_API,
        "storage_backend": settings.STORAGE_BACKEND,
    }


@router.get("/check-llm")
async def check_llm():
    """Pre-check LLM API keys — verify which keys are valid before generation."""
    return await check_llm_health()
