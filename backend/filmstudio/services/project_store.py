"""Project CRUD accessors.

``SqlProjectStore`` works against the relational schema. ``MemoryProjectStore``
is the development placeholder selected with ``STORAGE_BACKEND=memory``: a
dict plus a monotonically increasing id, lost on restart.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmstudio.models.project import Project

logger = logging.getLogger(__name__)


@dataclass
class ProjectRecord:
    """In-memory stand-in for a Project row."""

    id: int
    user_id: int
    name: str
    bible: dict[str, Any] | None = None
    is_script_locked: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ProjectStore(Protocol):
    async def create_project(self, user_id: int, name: str, bible: dict[str, Any] | None = None) -> Any: ...
    async def list_projects(self, user_id: int) -> list[Any]: ...
    async def get_project(self, project_id: int) -> Any | None: ...
    async def rename_project(self, project_id: int, name: str) -> Any: ...
    async def update_bible(self, project_id: int, patch: dict[str, Any]) -> Any: ...
    async def set_script_lock(self, project_id: int, locked: bool) -> Any: ...
    async def delete_project(self, project_id: int) -> bool: ...


def merge_bible(current: dict[str, Any] | None, patch: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge: top-level keys in ``patch`` replace those in ``current``."""
    merged = dict(current or {})
    merged.update(patch)
    return merged


class SqlProjectStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_project(self, user_id: int, name: str, bible: dict[str, Any] | None = None) -> Project:
        project = Project(user_id=user_id, name=name, bible=bible or {}, is_script_locked=False)
        self.db.add(project)
        await self.db.flush()
        await self.db.refresh(project)
        logger.info("Created project %s for user %s", project.id, user_id)
        return project

    async def list_projects(self, user_id: int) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.user_id == user_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    async def get_project(self, project_id: int) -> Project | None:
        return await self.db.get(Project, project_id)

    async def _require(self, project_id: int) -> Project:
        project = await self.get_project(project_id)
        if project is None:
            raise ValueError(f"Project {project_id} not found")
        return project

    async def rename_project(self, project_id: int, name: str) -> Project:
        project = await self._require(project_id)
        project.name = name
        await self.db.flush()
        await self.db.refresh(project)
        return project

    async def update_bible(self, project_id: int, patch: dict[str, Any]) -> Project:
        project = await self._require(project_id)
        # reassign so the JSON column is flagged dirty
        project.bible = merge_bible(project.bible, patch)
        await self.db.flush()
        await self.db.refresh(project)
        return project

    async def set_script_lock(self, project_id: int, locked: bool) -> Project:
        project = await self._require(project_id)
        project.is_script_locked = locked
        await self.db.flush()
        await self.db.refresh(project)
        logger.info("Project %s script lock -> %s", project_id, locked)
        return project

    async def delete_project(self, project_id: int) -> bool:
        project = await self.get_project(project_id)
        if project is None:
            return False
        await self.db.delete(project)
        await self.db.flush()
        return True


class MemoryProjectStore:
    def __init__(self) -> None:
        self._projects: dict[int, ProjectRecord] = {}
        self._next_id = 1

    async def create_project(self, user_id: int, name: str, bible: dict[str, Any] | None = None) -> ProjectRecord:
        record = ProjectRecord(
            id=self._next_id, user_id=user_id, name=name, bible=copy.deepcopy(bible or {}),
        )
        self._projects[record.id] = record
        self._next_id += 1
        return copy.deepcopy(record)

    async def list_projects(self, user_id: int) -> list[ProjectRecord]:
        records = [p for p in self._projects.values() if p.user_id == user_id]
        records.sort(key=lambda p: p.id, reverse=True)
        return [copy.deepcopy(p) for p in records]

    async def get_project(self, project_id: int) -> ProjectRecord | None:
        record = self._projects.get(project_id)
        return copy.deepcopy(record) if record is not None else None

    def _require(self, project_id: int) -> ProjectRecord:
        record = self._projects.get(project_id)
        if record is None:
            raise ValueError(f"Project {project_id} not found")
        return record

    def _touch(self, record: ProjectRecord) -> ProjectRecord:
        record.updated_at = datetime.now(timezone.utc)
        return copy.deepcopy(record)

    async def rename_project(self, project_id: int, name: str) -> ProjectRecord:
        record = self._require(project_id)
        record.name = name
        return self._touch(record)

    async def update_bible(self, project_id: int, patch: dict[str, Any]) -> ProjectRecord:
        record = self._require(project_id)
        record.bible = merge_bible(record.bible, copy.deepcopy(patch))
        return self._touch(record)

    async def set_script_lock(self, project_id: int, locked: bool) -> ProjectRecord:
        record = self._require(project_id)
        record.is_script_locked = locked
        return self._touch(record)

    async def delete_project(self, project_id: int) -> bool:
        return self._projects.pop(project_id, None) is not None


_memory_store = MemoryProjectStore()


def get_memory_store() -> MemoryProjectStore:
    return _memory_store
