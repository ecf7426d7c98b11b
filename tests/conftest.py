"""
Shared fixtures: a deterministic stand-in for the AI classifier.
"""

import pytest

from moderation_api.schemas.moderation import Classification


class StubClassifier:
    """Returns a fixed classification and records every request it sees."""

    def __init__(self, classification=None, fail_on=None):
        self.classification = classification or Classification(
            is_problematic=False,
            confidence=0.95,
            categories=[],
            reasoning="No policy violations found",
            severity="low",
        )
        self.fail_on = fail_on or set()
        self.calls = []

    async def classify(self, request):
        self.calls.append(request)
        if request.content in self.fail_on:
            raise RuntimeError(f"classifier exploded on {request.content!r}")
        return self.classification


@pytest.fixture
def stub_classifier():
    return StubClassifier()


@pytest.fixture
def make_classifier():
    return StubClassifier
