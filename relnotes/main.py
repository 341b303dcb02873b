import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from relnotes.config import get_settings
from relnotes.api.routes import patterns, release_notes, sync
from relnotes.services.container import get_services

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for relnotes modules
logger = logging.getLogger("relnotes")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let queued pattern extractions finish before the process exits
    if get_services.cache_info().currsize:
        await get_services().task_queue.shutdown(wait=True)


app = FastAPI(
    title=settings.app_name,
    description="Bug tracker sync, AI release note drafting, and learning from manager corrections",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(sync.router, prefix="/api/sync", tags=["Tracker Sync"])
app.include_router(release_notes.router, prefix="/api/release-notes", tags=["Release Notes"])
app.include_router(patterns.router, prefix="/api/patterns", tags=["Learning"])


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Release Notes Generator",
        "version": "0.1.0",
        "endpoints": {
            "sync": "/api/sync",
            "release_notes": "/api/release-notes",
            "patterns": "/api/patterns",
            "health": "/health",
            "docs": "/docs",
            "redoc": "/redoc",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}
