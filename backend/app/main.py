"""
FastAPI main application.

Handles:
- Application initialization
- Middleware configuration
- Route mounting
- CORS setup
- Error normalization
- Startup/shutdown events
"""
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.rate_limit import limiter
from app.api.routes import users, subscriptions, comments

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Video platform backend: accounts, token sessions, channels and watch history",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app, settings)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Log runtime configuration on startup."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Media storage backend: {settings.storage_backend}")
    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down application")


# Health check endpoint
@app.get(f"{settings.api_v1_prefix}/healthcheck")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else "Documentation disabled in production",
        "health": f"{settings.api_v1_prefix}/healthcheck"
    }


# Mount API routes
app.include_router(
    users.router,
    prefix=f"{settings.api_v1_prefix}/users",
    tags=["users"]
)

app.include_router(
    subscriptions.router,
    prefix=f"{settings.api_v1_prefix}/subscriptions",
    tags=["subscriptions"]
)

app.include_router(
    comments.router,
    prefix=f"{settings.api_v1_prefix}/comments",
    tags=["comments"]
)

# Locally stored media is served by the app itself
if settings.storage_backend == "local":
    app.mount(
        settings.media_url_prefix,
        StaticFiles(directory=str(Path(settings.local_storage_path) / "media"), check_dir=False),
        name="media",
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
