"""
Tests for the business rules that turn a classification into a verdict.
"""

import pytest

from moderation_api.schemas.moderation import Classification, ModerationRequest
from moderation_api.services.rules import (
    AGE_RESTRICT_RECOMMENDATION,
    CRITICAL_RECOMMENDATION,
    HIGH_RECOMMENDATION,
    RULES,
    UNAVAILABLE_RECOMMENDATION,
    Rule,
    normalize,
)


def make_classification(**overrides) -> Classification:
    fields = {
        "is_problematic": False,
        "confidence": 0.9,
        "categories": [],
        "reasoning": "test",
        "severity": "low",
    }
    fields.update(overrides)
    return Classification(**fields)


@pytest.fixture
def request_():
    return ModerationRequest(content="some content")


class TestApiErrorOverride:
    """Fallback classifications from a failing backend."""

    @pytest.mark.parametrize("category", [
        "api_rate_limit", "api_auth_error", "api_server_error", "api_error"
    ])
    def test_api_error_forces_not_problematic(self, category, request_):
        classification = make_classification(is_problematic=True, categories=[category])
        verdict = normalize(classification, request_)
        assert verdict.is_problematic is False
        assert verdict.recommendations == [UNAVAILABLE_RECOMMENDATION]

    def test_api_error_skips_severity_floors(self, request_):
        classification = make_classification(
            is_problematic=True,
            categories=["api_error", "violence"],
            severity="critical",
            confidence=0.2,
        )
        verdict = normalize(classification, request_)
        assert verdict.is_problematic is False
        assert verdict.confidence == 0.2
        assert verdict.recommendations == [UNAVAILABLE_RECOMMENDATION]


class TestSeverityFloors:
    """Critical and high severity raise problem flag and confidence."""

    def test_critical_floor(self, request_):
        classification = make_classification(
            is_problematic=True, severity="critical", confidence=0.3, categories=["violence"]
        )
        verdict = normalize(classification, request_)
        assert verdict.is_problematic is True
        assert verdict.confidence >= 0.9
        assert verdict.recommendations == [
            CRITICAL_RECOMMENDATION,
            "Avoid content that promotes violence",
        ]

    def test_critical_floor_marks_problematic(self, request_):
        verdict = normalize(make_classification(severity="critical", confidence=0.1), request_)
        assert verdict.is_problematic is True
        assert verdict.confidence == 0.9

    def test_high_floor(self, request_):
        verdict = normalize(make_classification(severity="high", confidence=0.2), request_)
        assert verdict.is_problematic is True
        assert verdict.confidence == 0.8
        assert verdict.recommendations == [HIGH_RECOMMENDATION]

    def test_floor_never_lowers_confidence(self, request_):
        verdict = normalize(make_classification(severity="high", confidence=0.97), request_)
        assert verdict.confidence == 0.97

    def test_medium_low_confidence_stays_problematic(self, request_):
        classification = make_classification(
            is_problematic=True, severity="medium", confidence=0.2, categories=[]
        )
        verdict = normalize(classification, request_)
        assert verdict.is_problematic is True
        assert verdict.confidence == 0.2
        assert verdict.recommendations == []


class TestPlatformRules:
    """Platform specific overrides."""

    def test_youtube_explicit_content_is_age_restricted(self):
        request = ModerationRequest(content="clip", platform="youtube")
        classification = make_classification(
            is_problematic=True, severity="medium", confidence=0.7, categories=["explicit_content"]
        )
        verdict = normalize(classification, request)
        assert verdict.severity == "high"
        assert verdict.recommendations == [AGE_RESTRICT_RECOMMENDATION]

    def test_other_platforms_are_untouched(self):
        request = ModerationRequest(content="clip", platform="twitter")
        classification = make_classification(
            is_problematic=True, severity="medium", confidence=0.7, categories=["explicit_content"]
        )
        verdict = normalize(classification, request)
        assert verdict.severity == "medium"
        assert verdict.recommendations == []


class TestConfidenceGating:
    """Low confidence suppression and clamping."""

    def test_low_confidence_low_severity_is_suppressed(self, request_):
        classification = make_classification(is_problematic=True, severity="low", confidence=0.4)
        verdict = normalize(classification, request_)
        assert verdict.is_problematic is False

    def test_confident_low_severity_is_kept(self, request_):
        classification = make_classification(is_problematic=True, severity="low", confidence=0.5)
        assert normalize(classification, request_).is_problematic is True

    @pytest.mark.parametrize("raw, expected", [(1.5, 1.0), (-0.3, 0.0), (0.42, 0.42)])
    def test_confidence_is_clamped(self, raw, expected, request_):
        verdict = normalize(make_classification(confidence=raw, severity="medium"), request_)
        assert verdict.confidence == expected

    def test_unrecognized_severity_passes_through(self, request_):
        classification = make_classification(is_problematic=True, severity="extreme", confidence=0.3)
        verdict = normalize(classification, request_)
        assert verdict.severity == "extreme"
        assert verdict.is_problematic is True

    def test_nan_confidence_is_treated_as_zero(self, request_):
        classification = make_classification(is_problematic=True, severity="low", confidence=float("nan"))
        verdict = normalize(classification, request_)
        assert verdict.confidence == 0.0
        assert verdict.is_problematic is False


class TestCategoryRecommendations:
    """Recommendations keyed by category."""

    def test_recommendations_follow_table_order(self, request_):
        classification = make_classification(
            is_problematic=True,
            severity="medium",
            categories=["spam", "misinformation", "harassment", "hate_speech"],
        )
        verdict = normalize(classification, request_)
        assert verdict.recommendations == [
            "Consider using more inclusive language",
            "Please be respectful in your communication",
            "Please verify facts before sharing",
            "Avoid repetitive or promotional content",
        ]

    def test_unknown_categories_add_nothing(self, request_):
        verdict = normalize(make_classification(categories=["self_harm"], severity="medium"), request_)
        assert verdict.recommendations == []


class TestRuleTable:
    """The rule table itself."""

    def test_rule_order(self):
        assert [rule.name for rule in RULES][:5] == [
            "api_error_override",
            "critical_severity_floor",
            "high_severity_floor",
            "youtube_explicit_content",
            "low_confidence_suppression",
        ]

    def test_custom_rule_table(self, request_):
        rules = [Rule("always_flag", lambda v, r: True, lambda v: setattr(v, "is_problematic", True))]
        verdict = normalize(make_classification(), request_, rules=rules)
        assert verdict.is_problematic is True

    def test_classification_is_not_mutated(self, request_):
        classification = make_classification(categories=["violence"], severity="critical", confidence=0.1)
        normalize(classification, request_)
        assert classification.confidence == 0.1
        assert classification.is_problematic is False
        assert classification.categories == ["violence"]
