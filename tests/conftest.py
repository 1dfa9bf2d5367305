"""
Pytest Configuration and Fixtures

Settings are read once at import time, so the environment is pinned here
before anything from ``filmstudio`` is imported: mock providers, an
in-memory SQLite database and a throwaway media volume.
"""

import os
import shutil
import tempfile

MEDIA_DIR = tempfile.mkdtemp(prefix="filmstudio-media-")

os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["USE_MOCK_API"] = "true"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["MEDIA_VOLUME"] = MEDIA_DIR
os.environ["COST_APPROVAL_THRESHOLD"] = "0.01"
os.environ["AUTO_CREATE_TABLES"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from filmstudio.database import build_engine, get_db, init_db  # noqa: E402
from filmstudio.main import app  # noqa: E402
from filmstudio.models import Project  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(MEDIA_DIR, ignore_errors=True)


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client bound to the app, with get_db pointed at the test database."""

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def project(db) -> Project:
    """A stored project with a script and brand in its bible."""
    p = Project(
        user_id=1,
        name="Launch Spot",
        bible={
            "script": "INT. KITCHEN - DAY\nMAYA pours coffee.\n\nEXT. STREET - NIGHT\nMAYA runs.",
            "style": "Noir",
            "brand": {
                "voice": "Bold",
                "visual_identity": "High contrast",
                "color_palette": {"primary": "#111111"},
            },
        },
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


@pytest.fixture
def sample_script() -> str:
    return (
        "INT. KITCHEN - DAY\n"
        "MAYA (30s) pours coffee and stares out the window.\n\n"
        "EXT. STREET - NIGHT\n"
        "MAYA runs through the rain toward a glowing storefront.\n"
    )
