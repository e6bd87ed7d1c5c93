"""
Google Ads Editor Ingest
Main FastAPI application
"""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from gads_ingest.config import get_settings
from gads_ingest.utils.logger import log
from gads_ingest import __version__

# Import routers
from gads_ingest.api import health, editor_import

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    # Initialize database
    try:
        from gads_ingest.models.base import init_db
        init_db()
        log.info("Database initialized")
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    yield

    # Shutdown
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Streaming importer for Google Ads Editor account exports

    - Decodes UTF-16 LE, tab-separated exports in chunks of any size
    - Extracts campaigns, ad groups, keywords and ads
    - Records every import in a ledger keyed by a fingerprint of the file
    """,
    lifespan=lifespan
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(editor_import.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gads_ingest.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
