from __future__ import annotations
"""Shared FastAPI dependencies."""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.config import get_settings
from filmstudio.database import get_db
from filmstudio.services.project_store import ProjectStore, SqlProjectStore, get_memory_store

settings = get_settings()


async def get_user_id(x_user_id: int | None = Header(None)) -> int:
    """Acting user: the X-User-Id header, else the configured default user."""
    return x_user_id if x_user_id is not None else settings.DEFAULT_USER_ID


async def get_project_store(db: AsyncSession = Depends(get_db)) -> ProjectStore:
    if settings.STORAGE_BACKEND == "memory":
        return get_memory_store()
    return SqlProjectStore(db)
