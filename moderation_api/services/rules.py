"""
Business rules applied to the classifier output.

Rules are evaluated in table order against a working verdict. A rule whose
``stop`` flag is set ends evaluation once it has fired. Floors only ever raise
``is_problematic`` and ``confidence``.
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Tuple

from moderation_api.core.logger import logger
from moderation_api.schemas.moderation import (
    Classification,
    ModerationRequest,
    ModerationVerdict,
    Severity,
)

API_ERROR_CATEGORIES = frozenset({
    "api_rate_limit",
    "api_auth_error",
    "api_server_error",
    "api_error",
})

UNAVAILABLE_RECOMMENDATION = "Content moderation temporarily unavailable. Please try again later."
CRITICAL_RECOMMENDATION = "Immediate content removal required"
HIGH_RECOMMENDATION = "Content should be reviewed by human moderators"
AGE_RESTRICT_RECOMMENDATION = "Consider age-restricting this content"

CATEGORY_RECOMMENDATIONS: Tuple[Tuple[str, str], ...] = (
    ("hate_speech", "Consider using more inclusive language"),
    ("harassment", "Please be respectful in your communication"),
    ("violence", "Avoid content that promotes violence"),
    ("misinformation", "Please verify facts before sharing"),
    ("spam", "Avoid repetitive or promotional content"),
)

LOW_CONFIDENCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[ModerationVerdict, ModerationRequest], bool]
    apply: Callable[[ModerationVerdict], None]
    stop: bool = False


def _has_api_error(verdict: ModerationVerdict, request: ModerationRequest) -> bool:
    return any(category in API_ERROR_CATEGORIES for category in verdict.categories)


def _mark_unavailable(verdict: ModerationVerdict) -> None:
    verdict.is_problematic = False
    verdict.recommendations.append(UNAVAILABLE_RECOMMENDATION)


def _severity_floor(confidence: float, recommendation: str) -> Callable[[ModerationVerdict], None]:
    def apply(verdict: ModerationVerdict) -> None:
        verdict.is_problematic = True
        verdict.confidence = max(verdict.confidence, confidence)
        verdict.recommendations.append(recommendation)
    return apply


def _is_youtube_explicit(verdict: ModerationVerdict, request: ModerationRequest) -> bool:
    return request.platform == "youtube" and "explicit_content" in verdict.categories


def _age_restrict(verdict: ModerationVerdict) -> None:
    verdict.severity = Severity.high.value
    verdict.recommendations.append(AGE_RESTRICT_RECOMMENDATION)


def _is_low_confidence(verdict: ModerationVerdict, request: ModerationRequest) -> bool:
    return verdict.confidence < LOW_CONFIDENCE_THRESHOLD and verdict.severity == Severity.low.value


def _suppress(verdict: ModerationVerdict) -> None:
    verdict.is_problematic = False


def _has_category(category: str) -> Callable[[ModerationVerdict, ModerationRequest], bool]:
    return lambda verdict, request: category in verdict.categories


def _recommend(recommendation: str) -> Callable[[ModerationVerdict], None]:
    return lambda verdict: verdict.recommendations.append(recommendation)


RULES: List[Rule] = [
    Rule("api_error_override", _has_api_error, _mark_unavailable, stop=True),
    Rule(
        "critical_severity_floor",
        lambda verdict, request: verdict.severity == Severity.critical.value,
        _severity_floor(0.9, CRITICAL_RECOMMENDATION),
    ),
    Rule(
        "high_severity_floor",
        lambda verdict, request: verdict.severity == Severity.high.value,
        _severity_floor(0.8, HIGH_RECOMMENDATION),
    ),
    Rule("youtube_explicit_content", _is_youtube_explicit, _age_restrict),
    Rule("low_confidence_suppression", _is_low_confidence, _suppress),
] + [
    Rule(f"{category}_recommendation", _has_category(category), _recommend(text))
    for category, text in CATEGORY_RECOMMENDATIONS
]


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def normalize(
    classification: Classification,
    request: ModerationRequest,
    rules: List[Rule] = RULES
) -> ModerationVerdict:
    """
    Turn a classifier result into the final verdict.

    Args:
        classification: Output of the AI classifier adapter
        request: The request being moderated, used for platform rules
        rules: Ordered rule table, overridable for testing

    Returns:
        A new verdict; the classification is left untouched
    """
    verdict = ModerationVerdict(
        is_problematic=classification.is_problematic,
        confidence=_clamp(classification.confidence),
        categories=list(classification.categories),
        reasoning=classification.reasoning,
        severity=classification.severity,
        recommendations=[],
    )

    if verdict.severity not in Severity.__members__:
        logger.warning(
            f"Unrecognized severity '{verdict.severity}' passed through",
            extra={"severity": verdict.severity, "stage": "normalize"}
        )

    for rule in rules:
        if not rule.applies(verdict, request):
            continue
        rule.apply(verdict)
        logger.debug(
            f"Rule {rule.name} applied",
            extra={"stage": "normalize", "severity": verdict.severity}
        )
        if rule.stop:
            break

    return verdict
