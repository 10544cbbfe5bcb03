"""FastAPI application — main entry point."""

from pathlib import Path

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.infrastructure.database import engine, Base
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import setup_exception_handlers

# Import all models so SQLAlchemy knows about them
from app.domain.models.user import User  # noqa: F401
from app.domain.models.place import Place  # noqa: F401

# Import routers
from app.interfaces.api.users import router as users_router
from app.interfaces.api.places import router as places_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting Places API...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    engine.dispose()
    logger.info("Places API stopped")


app = FastAPI(
    title="Places API",
    description="Share places with a picture, an address and a map location",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)
setup_exception_handlers(app)

app.include_router(users_router)
app.include_router(places_router)

# Stored images are served as-is
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads/images", StaticFiles(directory=settings.UPLOAD_DIR), name="images")


@app.get("/health")
def health():
    return {"status": "healthy"}
