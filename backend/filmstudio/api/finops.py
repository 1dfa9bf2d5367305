from __future__ import annotations
"""FinOps endpoints — cost estimates and the usage ledger."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.database import get_db
from filmstudio.schemas.generation import (
    CostEstimateRequest,
    CostEstimateResponse,
    UsageEntryRead,
    UsageSummary,
    VideoCostRequest,
)
from filmstudio.services import ledger, pricing

router = APIRouter()
settings = get_settings()


@router.get("/pricing")
async def pricing_registry():
    """Per-unit USD prices by model id."""
    return {
        "prices": pricing.PRICING_REGISTRY,
        "approval_threshold": settings.COST_APPROVAL_THRESHOLD,
    }


@router.post("/estimate", response_model=CostEstimateResponse)
async def estimate(req: CostEstimateRequest):
    cost = pricing.estimate_cost(req.model_id, req.quantity)
    return CostEstimateResponse(
        model_id=req.model_id,
        quantity=req.quantity,
        estimated_cost=cost,
        requires_approval=pricing.requires_approval(cost),
    )


@router.post("/video-estimate")
async def video_estimate(req: VideoCostRequest):
    """Per-clip estimate, project-wide comparison and a provider recommendation."""
    clip = pricing.estimate_video_cost(req.provider, req.duration, req.resolution)
    return {
        "estimate": asdict(clip),
        "project": pricing.estimate_project_video_cost(req.shot_count, req.duration, req.resolution),
        "recommended_provider": pricing.recommend_provider(
            req.duration, req.resolution, req.prioritize_speed
        ),
    }


@router.get("/projects/{project_id}/usage", response_model=UsageSummary)
async def project_usage(project_id: int, db: AsyncSession = Depends(get_db)):
    return await ledger.project_usage(db, project_id)


@router.get("/projects/{project_id}/ledger", response_model=list[UsageEntryRead])
async def project_ledger(
    project_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    return await ledger.list_usage(db, project_id, limit)
