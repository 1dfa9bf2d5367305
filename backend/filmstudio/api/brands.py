from __future__ import annotations
"""Brand endpoints — CRUD, identity extraction and project linking."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.api.deps import get_user_id
from filmstudio.database import get_db
from filmstudio.schemas.brand import (
    BrandAssignment,
    BrandCreate,
    BrandRead,
    BrandUpdate,
    DirectivesRequest,
    DirectivesResponse,
    IngestRequest,
)
from filmstudio.schemas.project import ProjectRead
from filmstudio.services import brands

router = APIRouter()


@router.get("/", response_model=list[BrandRead])
async def list_brands(user_id: int = Depends(get_user_id), db: AsyncSession = Depends(get_db)):
    return await brands.list_brands(db, user_id)


@router.post("/", response_model=BrandRead, status_code=201)
async def create_brand(
    data: BrandCreate,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await brands.create_brand(db, user_id, data.model_dump())


@router.get("/{brand_id}", response_model=BrandRead)
async def get_brand(
    brand_id: int, user_id: int = Depends(get_user_id), db: AsyncSession = Depends(get_db)
):
    try:
        return await brands.get_brand(db, brand_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{brand_id}", response_model=BrandRead)
async def update_brand(
    brand_id: int,
    data: BrandUpdate,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await brands.update_brand(
            db, brand_id, user_id, data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{brand_id}", status_code=204)
async def delete_brand(
    brand_id: int, user_id: int = Depends(get_user_id), db: AsyncSession = Depends(get_db)
):
    try:
        await brands.delete_brand(db, brand_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{brand_id}/ingest", response_model=BrandRead)
async def ingest_brand_identity(
    brand_id: int,
    req: IngestRequest,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Fill voice, palette, audience and constraints from a source document."""
    try:
        return await brands.ingest_brand_identity(
            db, brand_id, user_id, req.source_url, req.project_id
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/projects/{project_id}", response_model=ProjectRead)
async def assign_brand(
    project_id: int,
    req: BrandAssignment,
    user_id: int = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await brands.assign_brand(db, project_id, req.brand_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/projects/{project_id}/directives", response_model=DirectivesResponse)
async def inject_brand_directives(
    project_id: int, req: DirectivesRequest, db: AsyncSession = Depends(get_db)
):
    """Preview a prompt wrapped in the linked brand's identity."""
    try:
        prompt = await brands.inject_brand_directives(db, project_id, req.prompt)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return DirectivesResponse(prompt=prompt, brand_applied=prompt != req.prompt)
