"""
Deterministic checks run before the AI classifier.

Each check either returns a finished verdict, which short-circuits the
pipeline, or ``None``. Checks run in a fixed order and the first hit wins.
"""

import re
from collections import Counter
from typing import Callable, List, Optional

from moderation_api.schemas.moderation import ModerationVerdict, Severity

MAX_CONTENT_LENGTH = 10000  # characters, measured after trimming
REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{9,}")
SPECIAL_CHAR_PATTERN = re.compile(r"[!@#$%^&*()_+=\[\]{}|;':\",./<>?~`]")

MIN_WORDS_FOR_REPETITION = 10
MIN_COUNTED_WORD_LENGTH = 3
MAX_REPETITION_RATIO = 0.3

MIN_LENGTH_FOR_SPECIAL_CHARS = 50
MAX_SPECIAL_CHAR_RATIO = 0.2


def _flagged(
    category: str,
    severity: Severity,
    confidence: float,
    reasoning: str,
    recommendation: str
) -> ModerationVerdict:
    return ModerationVerdict(
        is_problematic=True,
        confidence=confidence,
        categories=[category],
        reasoning=reasoning,
        severity=severity.value,
        recommendations=[recommendation],
    )


def check_empty(content: str) -> Optional[ModerationVerdict]:
    if len(content.strip()) == 0:
        return _flagged(
            "empty_content", Severity.low, 1.0,
            "Content is empty",
            "Please provide meaningful content",
        )
    return None


def check_length(content: str) -> Optional[ModerationVerdict]:
    if len(content.strip()) > MAX_CONTENT_LENGTH:
        return _flagged(
            "excessive_length", Severity.medium, 0.8,
            "Content exceeds maximum length limit",
            "Please shorten your content to under 10,000 characters",
        )
    return None


def check_repeated_characters(content: str) -> Optional[ModerationVerdict]:
    if REPEATED_CHAR_PATTERN.search(content):
        return _flagged(
            "spam", Severity.high, 0.9,
            "Content matches spam patterns - repeated characters",
            "Please avoid spam-like content patterns",
        )
    return None


def repetition_ratio(content: str) -> float:
    """
    Share of the most frequent word among all whitespace-separated tokens.

    Only words of three or more characters are counted, but the ratio is
    taken over every token. Returns 0.0 for content with too few tokens to
    judge or with no countable word.

    Args:
        content: Raw content

    Returns:
        Ratio in [0, 1]
    """
    words = re.split(r"\s+", content.lower())
    if len(words) <= MIN_WORDS_FOR_REPETITION:
        return 0.0

    frequency = Counter(w for w in words if len(w) >= MIN_COUNTED_WORD_LENGTH)
    if not frequency:
        return 0.0

    _, max_count = frequency.most_common(1)[0]
    return max_count / len(words)


def check_repetition(content: str) -> Optional[ModerationVerdict]:
    if repetition_ratio(content) > MAX_REPETITION_RATIO:
        return _flagged(
            "spam", Severity.medium, 0.8,
            "Content shows excessive repetition patterns",
            "Please vary your content and avoid excessive repetition",
        )
    return None


def special_char_ratio(content: str) -> float:
    if not content:
        return 0.0
    return len(SPECIAL_CHAR_PATTERN.findall(content)) / len(content)


def check_special_characters(content: str) -> Optional[ModerationVerdict]:
    if len(content) > MIN_LENGTH_FOR_SPECIAL_CHARS and special_char_ratio(content) > MAX_SPECIAL_CHAR_RATIO:
        return _flagged(
            "spam", Severity.medium, 0.7,
            "Content contains excessive special characters",
            "Please reduce the use of special characters",
        )
    return None


CHECKS: List[Callable[[str], Optional[ModerationVerdict]]] = [
    check_empty,
    check_length,
    check_repeated_characters,
    check_repetition,
    check_special_characters,
]


def validate(content: str) -> Optional[ModerationVerdict]:
    """
    Run the heuristic checks in order.

    Args:
        content: Raw content to screen

    Returns:
        The verdict of the first check that flags the content, or None when
        every check passes and the AI stage should decide
    """
    for check in CHECKS:
        verdict = check(content)
        if verdict is not None:
            return verdict
    return None
