from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import time
import uuid
from contextlib import asynccontextmanager

from moderation_api.routers import moderation
from moderation_api.core.logger import logger
from moderation_api.core.exceptions import ContentModeratorException, EXCEPTION_STATUS_MAPPING
from moderation_api.core.config import settings
from moderation_api.dependencies import build_moderator

SERVICE_NAME = "content-moderation-api"

# Application lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the moderation pipeline once and share it across requests."""
    logger.info(
        "Starting Content Moderation API",
        extra={"version": settings.app_version, "provider": settings.llm_provider}
    )

    app.state.moderator = build_moderator(settings)

    yield

    logger.info("Shutting down Content Moderation API")

app = FastAPI(
    title=settings.app_name,
    description="""
    Screens free-text content for policy violations before it is published.

    ## Pipeline

    * **Heuristic checks**: empty or oversized content and obvious spam are
      decided without calling the AI backend
    * **AI classification**: Google Gemini (default) or OpenAI judges the content
    * **Business rules**: severity floors, platform rules and confidence gating
      turn the AI answer into a stable verdict

    If the AI backend is unavailable the verdict carries an `api_*` category and
    a retry recommendation instead of an error.
    """,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to all requests for tracing."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        extra={
            "request_id": request_id,
            "method": request.method,
            "url": str(request.url)
        }
    )

    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        "Request completed",
        extra={
            "request_id": request_id,
            "status_code": response.status_code,
            "process_time": process_time
        }
    )

    return response

# Global exception handler
@app.exception_handler(ContentModeratorException)
async def content_moderator_exception_handler(request: Request, exc: ContentModeratorException):
    """Handle custom application exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(
        f"Content Moderator exception: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=EXCEPTION_STATUS_MAPPING.get(type(exc), 500),
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
            "request_id": request_id
        }
    )

# Include routers
app.include_router(moderation.router)

# Health check endpoint
@app.get("/api/health", tags=["monitoring"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Health status and service identification
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "version": settings.app_version
    }

# Root endpoint
@app.get("/", tags=["general"])
async def root():
    """
    Root endpoint with API information.

    Returns:
        Basic API information and links
    """
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/api-docs",
        "health": "/api/health",
        "endpoints": {
            "moderate": "/api/moderate",
            "batch": "/api/moderate/batch",
            "categories": "/api/moderate/categories"
        }
    }
