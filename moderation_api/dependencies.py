"""
FastAPI dependencies for the moderation routers.
"""

from fastapi import HTTPException, Request

from moderation_api.clients.llm_client import create_llm_client
from moderation_api.core.config import Settings
from moderation_api.services.classifier import AIClassifier
from moderation_api.services.moderation_service import ContentModerator


def build_moderator(settings: Settings) -> ContentModerator:
    """Wire the pipeline for the configured LLM provider."""
    client = create_llm_client(settings)
    classifier = AIClassifier(client, timeout=settings.ai_timeout_seconds)
    return ContentModerator(classifier)


async def get_moderator(request: Request) -> ContentModerator:
    """Get the content moderator built during application startup"""
    moderator = getattr(request.app.state, "moderator", None)
    if moderator is None:
        raise HTTPException(status_code=503, detail="Content moderator not initialized")
    return moderator
