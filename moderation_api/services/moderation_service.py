from typing import List, Protocol

from moderation_api.core.logger import logger
from moderation_api.schemas.moderation import (
    Category,
    Classification,
    ModerationRequest,
    ModerationVerdict,
)
from moderation_api.services import categories, heuristics
from moderation_api.services.rules import normalize


class Classifier(Protocol):
    async def classify(self, request: ModerationRequest) -> Classification:
        ...


class ContentModerator:
    """
    Three-stage moderation pipeline.

    Heuristic checks run first and may decide on their own, in which case the
    classifier is never called. Otherwise the classifier's output goes through
    the business rules in :mod:`moderation_api.services.rules`.
    """

    def __init__(self, classifier: Classifier):
        self.classifier = classifier

    async def moderate(self, request: ModerationRequest) -> ModerationVerdict:
        """
        Moderate a single piece of content.

        Args:
            request: Validated moderation request

        Returns:
            Final verdict; backend problems are reported inside the verdict,
            never raised
        """
        log_extra = {
            "user_id": request.user_id,
            "platform": request.platform,
            "content_length": len(request.content),
        }

        verdict = heuristics.validate(request.content)
        if verdict is not None:
            logger.info(
                "Content flagged by heuristic checks, skipping AI classification",
                extra={**log_extra, "stage": "heuristics", "categories": verdict.categories}
            )
            return verdict

        classification = await self.classifier.classify(request)
        verdict = normalize(classification, request)

        logger.info(
            "Moderation completed",
            extra={
                **log_extra,
                "stage": "normalize",
                "categories": verdict.categories,
                "severity": verdict.severity,
                "is_problematic": verdict.is_problematic,
            }
        )
        return verdict

    def list_categories(self) -> List[Category]:
        return categories.list_categories()
