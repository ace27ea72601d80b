from __future__ import annotations

import json
from typing import Any, Callable

import pendulum
import pytest

from talentscreen.enrichment import SearchResponse
from talentscreen.storage import SqlScreeningStore


class FakeLLM:
    """Completion client returning scripted responses in order."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self._responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    def complete(self, system_prompt: str, payload: dict[str, Any]) -> str:
        self.calls.append({"system_prompt": system_prompt, "payload": payload})
        if not self._responses:
            raise RuntimeError("no scripted response left")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item if isinstance(item, str) else json.dumps(item)


class FakeSearch:
    def __init__(self, answers: dict[str, str] | None = None, fail: bool = False) -> None:
        self._answers = answers or {}
        self._fail = fail
        self.calls: list[str] = []

    def search(self, query: str) -> SearchResponse:
        self.calls.append(query)
        if self._fail:
            raise ConnectionError("search unavailable")
        for name, answer in self._answers.items():
            if query.startswith(name):
                return SearchResponse(answer=answer, results=[{"url": f"https://{name.lower()}.example"}])
        return SearchResponse()


def _detailed_analysis(score: float) -> dict[str, float]:
    return {
        "technicalDepth": score,
        "leadershipCapability": score,
        "customerFacing": score,
        "culturalFit": score,
        "handsOnCurrent": score,
        "builderDNA": score,
        "startupFit": score,
        "innovationCurrency": score,
    }


def _primary_response(decision: str = "PASS", score: float = 82, **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "decision": decision,
        "reasoning": f"{decision} after holistic review",
        "overallScore": score,
        "confidence": 80,
        "strengths": ["Hands-on architect"],
        "concerns": ["Limited customer exposure"],
        "interviewRecommendation": "Recommended" if decision != "REJECT" else "Not Recommended",
        "detailedAnalysis": _detailed_analysis(score),
        "redFlags": [],
        "suggestedInterviewQuestions": ["Walk through a recent system you built."],
        "similarToKnownProfiles": False,
    }
    if decision == "REVIEW":
        body["reviewReason"] = "mixed signal"
    if decision == "REJECT":
        body["shortRejectReason"] = "Pure people manager for a decade"
    body.update(overrides)
    return body


def _secondary_response(decision: str = "PASS", score: float = 78, **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "finalDecision": decision,
        "reasoning": "Builder language dominates recent roles",
        "keyFindings": ["Shipped two products from scratch"],
        "builderDNAEvidence": "Built, architected, shipped",
        "innovationCurrencyAssessment": "Uses modern AI tooling",
        "overqualificationAssessment": "Still codes weekly",
        "patternMatch": "Startup CTO",
        "updatedScore": score,
        "confidence": 85,
        "strengths": ["Recent hands-on work"],
        "concerns": ["Short tenure at last role"],
        "redFlags": [],
    }
    if decision == "REJECT":
        body["shortRejectReason"] = "Executive drift, no recent building"
    body.update(overrides)
    return body


def _profile(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "linkedinUrl": "https://www.linkedin.com/in/anna-schmidt",
        "firstName": "Anna",
        "lastName": "Schmidt",
        "headline": "CTO building developer platforms",
        "jobTitle": "CTO",
        "companyName": "Buildly",
        "addressCountryOnly": "Germany",
        "addressWithCountry": "Berlin, Germany",
        "experiences": [
            {
                "companyName": "Buildly",
                "title": "CTO",
                "jobStartedOn": "2021",
                "jobDescription": "Built the platform team and architected the core services.",
            },
            {
                "companyName": "Stackworks",
                "title": "Lead Engineer",
                "jobStartedOn": "2016",
                "jobEndedOn": "2021",
            },
        ],
        "educations": [{"schoolName": "TU Berlin", "degreeName": "MSc Computer Science"}],
        "skills": [{"title": "Python"}, {"name": "Kubernetes"}],
        "languages": [
            {"name": "German", "proficiency": "Native or bilingual proficiency"},
            {"name": "English"},
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
def fake_llm() -> type[FakeLLM]:
    return FakeLLM


@pytest.fixture
def fake_search() -> type[FakeSearch]:
    return FakeSearch


@pytest.fixture
def primary_response() -> Callable[..., dict[str, Any]]:
    return _primary_response


@pytest.fixture
def secondary_response() -> Callable[..., dict[str, Any]]:
    return _secondary_response


@pytest.fixture
def make_profile() -> Callable[..., dict[str, Any]]:
    return _profile


@pytest.fixture
def store() -> SqlScreeningStore:
    return SqlScreeningStore("sqlite://")


@pytest.fixture
def fixed_now() -> pendulum.DateTime:
    return pendulum.datetime(2026, 3, 2, 9, 30, tz="UTC")
