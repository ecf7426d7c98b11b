"""Catalog of the violation categories the moderator recognizes."""

from typing import List, Optional, Tuple

from moderation_api.schemas.moderation import Category, Severity

CATEGORIES: Tuple[Category, ...] = (
    Category(
        name="hate_speech",
        description="Content that attacks or demeans groups based on protected characteristics",
        severity=Severity.high,
    ),
    Category(
        name="harassment",
        description="Content intended to harass, bully, or intimidate",
        severity=Severity.high,
    ),
    Category(
        name="violence",
        description="Content promoting or glorifying violence",
        severity=Severity.critical,
    ),
    Category(
        name="explicit_content",
        description="Sexual or adult content",
        severity=Severity.medium,
    ),
    Category(
        name="misinformation",
        description="False or misleading information",
        severity=Severity.medium,
    ),
    Category(
        name="spam",
        description="Repetitive or promotional content",
        severity=Severity.low,
    ),
    Category(
        name="self_harm",
        description="Content promoting self-harm or suicide",
        severity=Severity.critical,
    ),
    Category(
        name="illegal_activities",
        description="Content promoting illegal activities",
        severity=Severity.critical,
    ),
    Category(
        name="terrorism",
        description="Content promoting terrorism or extremism",
        severity=Severity.critical,
    ),
)

_BY_NAME = {category.name: category for category in CATEGORIES}


def list_categories() -> List[Category]:
    """Return every category in catalog order.

    The list is a fresh copy; the entries themselves are frozen.
    """
    return list(CATEGORIES)


def category_names() -> List[str]:
    return [category.name for category in CATEGORIES]


def get_category(name: str) -> Optional[Category]:
    return _BY_NAME.get(name)
