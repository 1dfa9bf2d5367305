from __future__ import annotations
"""Film Studio — FastAPI application entry point.

Mounts all API routes, configures CORS, serves media static files,
maps service errors to HTTP responses and initializes the database on startup.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from filmstudio.api.router import api_router
from filmstudio.config import get_settings
from filmstudio.database import close_db, init_db
from filmstudio.services.base_gen_service import GenerationError
from filmstudio.services.llm_client import LLMError, close_client
from filmstudio.services.pricing import CostApprovalRequired

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: init DB on startup, close clients on shutdown."""
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info("USE_MOCK_API: %s", settings.USE_MOCK_API)
    logger.info("Storage backend: %s", settings.STORAGE_BACKEND)

    os.makedirs(settings.MEDIA_VOLUME, exist_ok=True)

    if settings.AUTO_CREATE_TABLES:
        await init_db()
    else:
        logger.info("Skipping init_db (tables assumed to exist)")

    yield

    await close_client()
    await close_db()
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="AI film pre-production — script, storyboard, character lock, edit and export",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CostApprovalRequired)
async def cost_approval_handler(request: Request, exc: CostApprovalRequired):
    return JSONResponse(
        status_code=412,
        content={
            "detail": str(exc),
            "requires_approval": True,
            "estimated_cost": exc.estimated_cost,
            "threshold": exc.threshold,
        },
    )


@app.exception_handler(LLMError)
async def llm_error_handler(request: Request, exc: LLMError):
    logger.error("LLM failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error("Generation failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc), "service": exc.service})


# Mount API routes
app.include_router(api_router)

# Mount media static files
os.makedirs(settings.MEDIA_VOLUME, exist_ok=True)
app.mount(settings.MEDIA_BASE_URL, StaticFiles(directory=settings.MEDIA_VOLUME), name="media")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": settings.APP_NAME,
        "status": "running",
        "mock_mode": settings.USE_MOCK_API,
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": settings.DB_HOST,
        "storage_backend": settings.STORAGE_BACKEND,
        "mock_mode": settings.USE_MOCK_API,
    }
