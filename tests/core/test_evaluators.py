from __future__ import annotations

import json

import pytest

from talentscreen.core import LanguageChecker, PrimaryEvaluator, SecondaryEvaluator, merge_decisions
from talentscreen.llm import InvalidResponse, parse_json_object, strip_json_fences
from talentscreen.schemas import (
    DECISION_ADAPTER,
    EnrichedCompany,
    LinkedInProfile,
    PassDecision,
    RejectDecision,
    ReviewDecision,
    ScreeningConfig,
    SecondaryPass,
    SecondaryReject,
)


@pytest.fixture
def bundle(make_profile):
    profile = LinkedInProfile.model_validate(make_profile())
    return {
        "profile": profile,
        "language_check": LanguageChecker().check(profile, "Germany"),
        "companies": [EnrichedCompany(name="Buildly", description="Seed-stage devtools startup")],
    }


def test_strip_json_fences():
    assert strip_json_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_json_fences('Here you go:\n```\n{"a": 2}\n```\nthanks') == '{"a": 2}'
    assert strip_json_fences('  {"a": 3}  ') == '{"a": 3}'


def test_parse_json_object_rejects_non_objects():
    with pytest.raises(InvalidResponse):
        parse_json_object("[1, 2]")
    with pytest.raises(InvalidResponse):
        parse_json_object("not json")


def test_primary_parses_fenced_response(bundle, fake_llm, primary_response):
    llm = fake_llm(["```json\n" + json.dumps(primary_response("PASS", 86)) + "\n```"])

    decision = PrimaryEvaluator(llm).evaluate(**bundle, config=ScreeningConfig(target_country="Germany"))

    assert isinstance(decision, PassDecision)
    assert decision.overall_score == 86
    payload = llm.calls[0]["payload"]
    assert payload["candidateName"] == "Anna Schmidt"
    assert payload["languageCheck"]["confidence"] == 90
    assert payload["companyContext"] == [{"name": "Buildly", "description": "Seed-stage devtools startup"}]
    assert "Local CTO position in Germany" in llm.calls[0]["system_prompt"]


@pytest.mark.parametrize(
    "response",
    [
        RuntimeError("upstream timeout"),
        "I think this candidate is great!",
        {"decision": "MAYBE", "reasoning": "?"},
    ],
)
def test_primary_fails_closed(bundle, fake_llm, response):
    decision = PrimaryEvaluator(fake_llm([response])).evaluate(**bundle)

    assert isinstance(decision, RejectDecision)
    assert decision.overall_score == 0
    assert decision.confidence == 0
    assert decision.detailed_analysis.technical_depth == 0
    revalidated = DECISION_ADAPTER.validate_python(decision.model_dump(by_alias=True))
    assert revalidated.decision == "REJECT"


def test_conditionally_required_reasons(bundle, fake_llm, primary_response):
    review = primary_response("REVIEW", 60)
    del review["reviewReason"]
    reject = primary_response("REJECT", 30)
    del reject["shortRejectReason"]

    for response in (review, reject):
        decision = PrimaryEvaluator(fake_llm([response])).evaluate(**bundle)
        assert decision.decision == "REJECT"
        assert decision.overall_score == 0


def test_secondary_receives_initial_evaluation(bundle, fake_llm, primary_response, secondary_response):
    initial = ReviewDecision.model_validate(primary_response("REVIEW", 65))
    llm = fake_llm([secondary_response("PASS", 78)])

    result = SecondaryEvaluator(llm).evaluate(**bundle, initial=initial)

    assert isinstance(result, SecondaryPass)
    assert result.updated_score == 78
    sent = llm.calls[0]["payload"]["initialEvaluation"]
    assert sent["score"] == 65
    assert sent["reviewReason"] == "mixed signal"
    assert "companySize" in llm.calls[0]["payload"]["experience"][0]
    assert "mixed signal" in llm.calls[0]["system_prompt"]


def test_secondary_cannot_return_review(bundle, fake_llm, primary_response, secondary_response):
    initial = ReviewDecision.model_validate(primary_response("REVIEW", 65))
    llm = fake_llm([secondary_response("REVIEW", 70)])

    result = SecondaryEvaluator(llm).evaluate(**bundle, initial=initial)

    assert isinstance(result, SecondaryReject)
    assert result.updated_score == 0


def test_merge_overwrites_scores_and_appends_lists(primary_response, secondary_response):
    initial = ReviewDecision.model_validate(
        primary_response("REVIEW", 65, redFlags=["Gap in 2019"])
    )
    second = SecondaryPass.model_validate(secondary_response("PASS", 78, redFlags=["Short stint"]))

    merged = merge_decisions(initial, second)

    assert isinstance(merged, PassDecision)
    assert merged.overall_score == 78
    assert merged.confidence == 85
    assert merged.reasoning == second.reasoning
    assert merged.strengths == ["Hands-on architect", "Recent hands-on work"]
    assert merged.concerns == ["Limited customer exposure", "Short tenure at last role"]
    assert merged.red_flags == ["Gap in 2019", "Short stint"]
    assert merged.escalated is True
    assert merged.review_reason == "mixed signal"


def test_merge_reject_carries_short_reason(primary_response, secondary_response):
    initial = ReviewDecision.model_validate(primary_response("REVIEW", 55))
    second = SecondaryReject.model_validate(secondary_response("REJECT", 40))

    merged = merge_decisions(initial, second)

    assert isinstance(merged, RejectDecision)
    assert merged.short_reject_reason == "Executive drift, no recent building"
    assert merged.interview_recommendation == "Not Recommended"
    assert merged.detailed_analysis == initial.detailed_analysis
