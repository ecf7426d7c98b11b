"""
AI classifier adapter.

Wraps a single LLM call per request and always returns a well-formed
``Classification``. Backend failures, timeouts and unparseable answers are
turned into low-severity, non-problematic fallbacks tagged with an ``api_*``
category so the rest of the pipeline never sees an exception.
"""

import asyncio
import json
import math
import re
from typing import Any, Optional, Tuple

from moderation_api.clients.llm_client import LLMClient
from moderation_api.core.exceptions import LLMServiceException
from moderation_api.core.logger import logger
from moderation_api.schemas.moderation import Classification, ModerationRequest, Severity
from moderation_api.services.categories import list_categories

CODE_FENCE_PATTERN = re.compile(r"```json|```")

PARSE_FAILURE_REASONING = "Failed to parse AI response"
NO_REASONING = "No reasoning provided"
FALLBACK_CONFIDENCE = 0.5

RATE_LIMIT = ("api_rate_limit", "API rate limit exceeded. Content could not be analyzed.")
AUTH_ERROR = ("api_auth_error", "API authentication failed. Content could not be analyzed.")
SERVER_ERROR = ("api_server_error", "API server error. Content could not be analyzed.")
GENERIC_ERROR = ("api_error", "API error occurred. Content could not be analyzed.")

SEVERITY_GUIDE = {
    Severity.low: "Minor policy violations",
    Severity.medium: "Moderate violations requiring attention",
    Severity.high: "Serious violations requiring immediate action",
    Severity.critical: "Extremely dangerous content requiring immediate removal",
}


def build_prompt(content: str) -> str:
    """Build the instruction sent to the model for one piece of content."""
    category_lines = "\n".join(
        f"- {category.name}: {category.description}" for category in list_categories()
    )
    severity_lines = "\n".join(
        f"- {severity.value}: {description}" for severity, description in SEVERITY_GUIDE.items()
    )
    return (
        "You are a content moderation AI. Analyze the following content and "
        "determine if it contains problematic material.\n\n"
        f'Content to analyze: "{content}"\n\n'
        "Please respond with a JSON object containing:\n"
        "{\n"
        '  "isProblematic": boolean,\n'
        '  "confidence": number (0-1),\n'
        '  "categories": string[],\n'
        '  "reasoning": string,\n'
        '  "severity": "low" | "medium" | "high" | "critical"\n'
        "}\n\n"
        f"Categories to check for:\n{category_lines}\n\n"
        f"Severity levels:\n{severity_lines}\n\n"
        "Only respond with the JSON object, no additional text."
    )


def _clamp_confidence(value: Any) -> float:
    try:
        confidence = float(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return max(0.0, min(1.0, confidence))


def parse_response(text: str) -> Classification:
    """
    Parse the model's answer into a Classification.

    Markdown code fences are stripped first. Missing or malformed fields get
    safe defaults; an answer that is not a JSON object yields the parse
    failure fallback.

    Args:
        text: Raw model output

    Returns:
        Parsed classification
    """
    cleaned = CODE_FENCE_PATTERN.sub("", str(text)).strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        logger.warning(
            "Failed to parse AI response",
            extra={"stage": "classify", "content_length": len(cleaned)}
        )
        return Classification(
            is_problematic=False,
            confidence=0.0,
            categories=[],
            reasoning=PARSE_FAILURE_REASONING,
            severity=Severity.low.value,
        )

    categories = parsed.get("categories")
    return Classification(
        is_problematic=bool(parsed.get("isProblematic") or False),
        confidence=_clamp_confidence(parsed.get("confidence")),
        categories=[c for c in categories if isinstance(c, str)] if isinstance(categories, list) else [],
        reasoning=str(parsed.get("reasoning") or NO_REASONING),
        severity=str(parsed.get("severity") or Severity.low.value),
    )


def categorize_failure(status_code: Optional[int]) -> Tuple[str, str]:
    """
    Map a backend status code to a fallback (category, reasoning) pair.

    Args:
        status_code: HTTP-equivalent status, or None if the failure had none

    Returns:
        Category name and reasoning text for the fallback classification
    """
    if status_code == 429:
        return RATE_LIMIT
    if status_code in (401, 403):
        return AUTH_ERROR
    if status_code is not None and status_code >= 500:
        return SERVER_ERROR
    return GENERIC_ERROR


def fallback_classification(category: str, reasoning: str) -> Classification:
    return Classification(
        is_problematic=False,
        confidence=FALLBACK_CONFIDENCE,
        categories=[category],
        reasoning=reasoning,
        severity=Severity.low.value,
    )


class AIClassifier:
    """Classifies content with an LLM, one attempt per request."""

    def __init__(self, client: LLMClient, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    async def classify(self, request: ModerationRequest) -> Classification:
        prompt = build_prompt(request.content)
        log_extra = {
            "stage": "classify",
            "user_id": request.user_id,
            "platform": request.platform,
        }

        try:
            text = await asyncio.wait_for(self.client.generate(prompt), timeout=self.timeout)
        except LLMServiceException as e:
            category, reasoning = categorize_failure(e.status_code)
            logger.warning(
                f"AI classifier call failed: {e.message}",
                extra={**log_extra, "categories": [category]}
            )
            return fallback_classification(category, reasoning)
        except asyncio.TimeoutError:
            category, reasoning = GENERIC_ERROR
            logger.warning(
                f"AI classifier call timed out after {self.timeout}s",
                extra={**log_extra, "categories": [category]}
            )
            return fallback_classification(category, reasoning)
        except Exception as e:
            category, reasoning = GENERIC_ERROR
            logger.error(
                f"Unexpected error calling AI classifier: {str(e)}",
                extra={**log_extra, "categories": [category]},
                exc_info=True
            )
            return fallback_classification(category, reasoning)

        classification = parse_response(text)
        logger.info(
            "AI classification completed",
            extra={
                **log_extra,
                "categories": classification.categories,
                "severity": classification.severity,
                "is_problematic": classification.is_problematic,
            }
        )
        return classification
