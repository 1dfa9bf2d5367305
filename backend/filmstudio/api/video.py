from __future__ import annotations
"""Video generation endpoints — shot animation and storyboard sequences."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.video import AnimateShotRequest, StoryboardVideoRequest, VideoJobRead
from filmstudio.services import video_jobs

router = APIRouter()


@router.post("/animate-shot", response_model=VideoJobRead, status_code=201)
async def animate_shot(
    req: AnimateShotRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Animate a shot's latest frame. A provider failure comes back as a failed job."""
    try:
        return await video_jobs.animate_shot(
            db,
            project_id=req.project_id,
            shot_id=req.shot_id,
            user_id=user_id,
            motion_prompt=req.motion_prompt,
            provider=req.provider,
            duration=req.duration,
            resolution=req.resolution,
            force=req.force,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/from-storyboard", response_model=VideoJobRead, status_code=201)
async def generate_from_storyboard(
    req: StoryboardVideoRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await video_jobs.generate_from_storyboard(
            db,
            project_id=req.project_id,
            user_id=user_id,
            provider=req.provider,
            force=req.force,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/projects/{project_id}/jobs", response_model=list[VideoJobRead])
async def list_jobs(project_id: int, db: AsyncSession = Depends(get_db)):
    return await video_jobs.list_jobs(db, project_id)


@router.get("/jobs/{job_id}", response_model=VideoJobRead)
async def get_job(job_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await video_jobs.get_job(db, job_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
