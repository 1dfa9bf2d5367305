from __future__ import annotations
"""Timeline editor endpoints — projects, tracks, clips, exports, comments, animatics."""

import subprocess

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.editor import (
    AnimaticRequest,
    AnimaticResponse,
    BatchPositionUpdate,
    ClipCreate,
    ClipPosition,
    ClipRead,
    ClipUpdate,
    CommentCreate,
    CommentRead,
    CommentUpdate,
    CutClipRequest,
    EditorProjectCreate,
    EditorProjectRead,
    EditorProjectUpdate,
    ExportCreate,
    ExportRead,
    ExportStatusUpdate,
    PopulateFromStoryboardRequest,
    TrackCreate,
    TrackRead,
    TrackUpdate,
)
from filmstudio.services import editor, export_service

router = APIRouter()


def _not_found(e: ValueError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


# --- Editor projects ---

@router.get("/projects/{project_id}", response_model=list[EditorProjectRead])
async def list_editor_projects(project_id: int, db: AsyncSession = Depends(get_db)):
    return await editor.list_editor_projects(db, project_id)


@router.post("/", response_model=EditorProjectRead, status_code=201)
async def create_editor_project(
    data: EditorProjectCreate,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await editor.create_editor_project(db, user_id, data.model_dump())
    except ValueError as e:
        raise _not_found(e)


@router.get("/{editor_project_id}", response_model=EditorProjectRead)
async def get_editor_project(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await editor.get_editor_project(db, editor_project_id)
    except ValueError as e:
        raise _not_found(e)


@router.patch("/{editor_project_id}", response_model=EditorProjectRead)
async def update_editor_project(
    editor_project_id: int, data: EditorProjectUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        return await editor.update_editor_project(
            db, editor_project_id, data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise _not_found(e)


@router.delete("/{editor_project_id}", status_code=204)
async def delete_editor_project(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await editor.delete_editor_project(db, editor_project_id)
    except ValueError as e:
        raise _not_found(e)


@router.post("/{editor_project_id}/populate-from-storyboard", response_model=list[ClipRead])
async def populate_from_storyboard(
    editor_project_id: int,
    req: PopulateFromStoryboardRequest,
    db: AsyncSession = Depends(get_db),
):
    """One image clip per shot frame, laid end to end on video track 1."""
    try:
        return await editor.populate_from_storyboard(db, editor_project_id, req.frame_duration)
    except ValueError as e:
        raise _not_found(e)


# --- Tracks ---

@router.get("/{editor_project_id}/tracks", response_model=list[TrackRead])
async def list_tracks(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    return await editor.list_tracks(db, editor_project_id)


@router.post("/{editor_project_id}/tracks", response_model=TrackRead, status_code=201)
async def create_track(
    editor_project_id: int, data: TrackCreate, db: AsyncSession = Depends(get_db)
):
    try:
        return await editor.create_track(db, editor_project_id, data.model_dump())
    except ValueError as e:
        raise _not_found(e)


@router.patch("/tracks/{track_id}", response_model=TrackRead)
async def update_track(track_id: int, data: TrackUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await editor.update_track(db, track_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _not_found(e)


@router.delete("/tracks/{track_id}", status_code=204)
async def delete_track(track_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await editor.delete_track(db, track_id)
    except ValueError as e:
        raise _not_found(e)


# --- Clips ---

@router.get("/{editor_project_id}/clips", response_model=list[ClipRead])
async def list_clips(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    return await editor.list_clips(db, editor_project_id)


@router.post("/{editor_project_id}/clips", response_model=ClipRead, status_code=201)
async def create_clip(
    editor_project_id: int, data: ClipCreate, db: AsyncSession = Depends(get_db)
):
    try:
        return await editor.create_clip(db, editor_project_id, data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/clips/{clip_id}", response_model=ClipRead)
async def update_clip(clip_id: int, data: ClipUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await editor.update_clip(db, clip_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _not_found(e)


@router.put("/clips/{clip_id}/position", response_model=ClipRead)
async def update_clip_position(
    clip_id: int, data: ClipPosition, db: AsyncSession = Depends(get_db)
):
    if data.id != clip_id:
        raise HTTPException(status_code=400, detail="Clip id mismatch")
    try:
        return await editor.update_clip_position(db, clip_id, data.start_time, data.track_id)
    except ValueError as e:
        raise _not_found(e)


@router.put("/{editor_project_id}/clips/positions")
async def batch_update_positions(
    editor_project_id: int, data: BatchPositionUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        updated = await editor.batch_update_positions(
            db, editor_project_id, [p.model_dump() for p in data.positions]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"updated": updated}


@router.post("/clips/{clip_id}/cut", response_model=list[ClipRead])
async def cut_clip(clip_id: int, req: CutClipRequest, db: AsyncSession = Depends(get_db)):
    """Split a clip at the playhead; returns both halves."""
    try:
        await editor.get_clip(db, clip_id)
    except ValueError as e:
        raise _not_found(e)
    try:
        return await editor.cut_clip(db, clip_id, req.playhead)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/clips/{clip_id}", status_code=204)
async def delete_clip(clip_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await editor.delete_clip(db, clip_id)
    except ValueError as e:
        raise _not_found(e)


# --- Exports ---

@router.get("/{editor_project_id}/exports", response_model=list[ExportRead])
async def list_exports(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    return await editor.list_exports(db, editor_project_id)


@router.post("/{editor_project_id}/exports", response_model=ExportRead, status_code=201)
async def create_export(
    editor_project_id: int,
    data: ExportCreate,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Queue an export row; with ``render`` set it is rendered in this request."""
    try:
        export = await editor.create_export(
            db, editor_project_id, user_id, data.format.value, data.quality.value
        )
    except ValueError as e:
        raise _not_found(e)
    if data.render:
        export = await export_service.render_editor_export(db, export.id)
    return export


@router.patch("/exports/{export_id}", response_model=ExportRead)
async def update_export_status(
    export_id: int, data: ExportStatusUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        return await editor.update_export_status(
            db, export_id, data.status.value, data.export_url, data.error
        )
    except ValueError as e:
        raise _not_found(e)


# --- Comments ---

@router.get("/{editor_project_id}/comments", response_model=list[CommentRead])
async def list_comments(editor_project_id: int, db: AsyncSession = Depends(get_db)):
    return await editor.list_comments(db, editor_project_id)


@router.post("/{editor_project_id}/comments", response_model=CommentRead, status_code=201)
async def create_comment(
    editor_project_id: int,
    data: CommentCreate,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await editor.create_comment(db, editor_project_id, user_id, data.model_dump())
    except ValueError as e:
        raise _not_found(e)


@router.patch("/comments/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: int, data: CommentUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        return await editor.update_comment(db, comment_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _not_found(e)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await editor.delete_comment(db, comment_id)
    except ValueError as e:
        raise _not_found(e)


# --- Animatic ---

@router.post("/animatic", response_model=AnimaticResponse, status_code=201)
async def create_animatic(req: AnimaticRequest, db: AsyncSession = Depends(get_db)):
    """Render the project's storyboard frames as a timed slideshow."""
    try:
        url, frame_count, duration = await export_service.create_animatic(
            db,
            req.project_id,
            req.frame_duration,
            req.audio_url,
            req.audio_volume,
            frame_durations=req.frame_durations,
            fps=req.fps,
            resolution=req.resolution,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (RuntimeError, OSError, subprocess.TimeoutExpired) as e:
        raise HTTPException(status_code=502, detail=f"Animatic render failed: {e}")
    return AnimaticResponse(url=url, frame_count=frame_count, duration=duration)
