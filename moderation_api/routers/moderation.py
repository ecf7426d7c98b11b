import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from moderation_api.core.config import settings
from moderation_api.core.exceptions import BatchTooLargeException, ValidationException
from moderation_api.core.logger import logger
from moderation_api.dependencies import get_moderator
from moderation_api.schemas.moderation import (
    BatchItemResult,
    BatchModerationRequest,
    BatchModerationResponse,
    BatchSummary,
    CategoriesResponse,
    ModerationRequest,
    ModerationResponse,
)
from moderation_api.services.moderation_service import ContentModerator

router = APIRouter(prefix="/api/moderate", tags=["moderation"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("", response_model=ModerationResponse, status_code=200)
async def moderate_content(
    payload: ModerationRequest,
    request: Request,
    moderator: ContentModerator = Depends(get_moderator)
):
    """
    Moderate a single piece of content.

    Runs the heuristic checks, the AI classifier and the business rules, and
    returns the final verdict. Backend outages are reported inside the verdict
    with an ``api_*`` category rather than as an error response.

    Args:
        payload: Content plus optional user id and platform
        request: FastAPI request object for logging
        moderator: Content moderation pipeline

    Returns:
        ModerationResponse: The verdict wrapped in the success envelope

    Raises:
        HTTPException: 500 if the pipeline fails unexpectedly
    """
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Moderation request received",
        extra={
            "request_id": request_id,
            "user_id": payload.user_id,
            "platform": payload.platform,
            "content_length": len(payload.content)
        }
    )

    try:
        verdict = await moderator.moderate(payload)
    except Exception as e:
        logger.error(
            "Unexpected error in content moderation",
            extra={"request_id": request_id, "user_id": payload.user_id},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail={
                "error_code": "INTERNAL_SERVER_ERROR",
                "message": "Failed to moderate content",
                "details": {"error": str(e)}
            }
        )

    return ModerationResponse(data=verdict, timestamp=_now())


async def _moderate_item(
    moderator: ContentModerator,
    index: int,
    item: ModerationRequest,
    request_id: str
) -> BatchItemResult:
    try:
        verdict = await moderator.moderate(item)
    except Exception:
        logger.error(
            f"Batch item {index} failed",
            extra={"request_id": request_id, "user_id": item.user_id},
            exc_info=True
        )
        return BatchItemResult(index=index, success=False, error="Failed to moderate content")
    return BatchItemResult(index=index, success=True, data=verdict)


@router.post("/batch", response_model=BatchModerationResponse, status_code=200)
async def moderate_batch(
    payload: BatchModerationRequest,
    request: Request,
    moderator: ContentModerator = Depends(get_moderator)
):
    """
    Moderate several pieces of content concurrently.

    Each item is moderated independently; a failing item is reported in its
    own slot and does not fail the batch.

    Raises:
        ValidationException: If the batch is empty
        BatchTooLargeException: If the batch exceeds ``max_batch_size``
    """
    request_id = getattr(request.state, "request_id", "unknown")
    items = payload.contents

    if not items:
        raise ValidationException(
            "Please provide an array of content to moderate",
            field="contents"
        )
    if len(items) > settings.max_batch_size:
        raise BatchTooLargeException(
            max_size=settings.max_batch_size,
            actual_size=len(items)
        )

    logger.info(
        f"Batch moderation request received with {len(items)} items",
        extra={"request_id": request_id}
    )

    results = await asyncio.gather(
        *(_moderate_item(moderator, index, item, request_id) for index, item in enumerate(items))
    )
    successful = sum(1 for result in results if result.success)

    return BatchModerationResponse(
        data=list(results),
        summary=BatchSummary(
            total=len(results),
            successful=successful,
            failed=len(results) - successful
        ),
        timestamp=_now()
    )


@router.get("/categories", response_model=CategoriesResponse, status_code=200)
async def get_categories(moderator: ContentModerator = Depends(get_moderator)):
    """List the violation categories the moderator recognizes."""
    return CategoriesResponse(data=moderator.list_categories(), timestamp=_now())
