from __future__ import annotations

import pytest

from talentscreen.adapters import LinkedInProfileAdapter
from talentscreen.core import LanguageChecker
from talentscreen.corrections import apply_manual_override, backfill_countries, reconcile_session_counters
from talentscreen.errors import CandidateNotFoundError, OverrideError, SessionNotFoundError
from talentscreen.pipeline import ProfileIngestor
from talentscreen.schemas import (
    DecisionResult,
    EvaluationUpdate,
    NewCandidate,
    PassDecision,
    RejectDecision,
    ScreeningConfig,
    SessionCounters,
)


@pytest.fixture
def evaluated(store, make_profile, primary_response, fixed_now):
    """Ingest one candidate and persist the given outcome as if processed."""

    def factory(outcome: DecisionResult):
        report = ProfileIngestor(store=store, adapter=LinkedInProfileAdapter()).ingest(
            [make_profile()], config=ScreeningConfig()
        )
        [candidate] = store.list_candidates(report.session_id)
        store.claim_candidate(candidate.id, token="t", now=fixed_now, stale_before=fixed_now.subtract(seconds=600))
        if outcome is DecisionResult.ERRORED:
            store.fail_candidate(
                candidate.id, token="t", session_id=report.session_id, message="boom", stack=""
            )
            return candidate
        if outcome is DecisionResult.PASS:
            decision = PassDecision.model_validate(primary_response("PASS", 82))
        else:
            decision = RejectDecision.model_validate(primary_response("REJECT", 25))
        store.complete_candidate(
            candidate.id,
            token="t",
            session_id=report.session_id,
            evaluation=EvaluationUpdate(
                language_check=LanguageChecker().check(candidate.profile, "Germany"),
                enriched_companies=[],
                final_decision=decision,
                decision_result=outcome,
                overall_score=decision.overall_score,
                processing_time_ms=12,
                evaluated_at=fixed_now,
            ),
        )
        return candidate

    return factory


def test_override_pass_to_reject_moves_counters(store, evaluated, fixed_now):
    candidate = evaluated(DecisionResult.PASS)

    result = apply_manual_override(
        store, candidate.id, "REJECT", "Failed reference check", overridden_by="lead", now_provider=lambda: fixed_now
    )

    assert result.original_decision is DecisionResult.PASS
    stored = store.get_candidate(candidate.id)
    assert stored.decision_result is DecisionResult.REJECT
    assert stored.manual_override["originalDecision"] == "PASS"
    assert stored.manual_override["overriddenBy"] == "lead"
    assert stored.manual_override["candidateSnapshot"]["overallScore"] == 82
    assert stored.final_decision["decision"] == "PASS"
    counters = store.get_session(candidate.session_id).counters()
    assert (counters.passed_candidates, counters.rejected_candidates) == (0, 1)
    assert counters.candidates_processed == 1


def test_override_errored_candidate(store, evaluated):
    candidate = evaluated(DecisionResult.ERRORED)

    apply_manual_override(store, candidate.id, DecisionResult.PASS, "Reviewed by hand")

    counters = store.get_session(candidate.session_id).counters()
    assert counters.errored_candidates == 0
    assert counters.passed_candidates == 1
    assert counters.is_consistent()


def test_same_decision_override_keeps_counters(store, evaluated):
    candidate = evaluated(DecisionResult.REJECT)

    apply_manual_override(store, candidate.id, "REJECT", "Confirmed")

    counters = store.get_session(candidate.session_id).counters()
    assert counters.rejected_candidates == 1
    assert store.get_candidate(candidate.id).manual_override["newDecision"] == "REJECT"


def test_override_guards(store, evaluated, make_profile):
    candidate = evaluated(DecisionResult.PASS)
    report = ProfileIngestor(store=store, adapter=LinkedInProfileAdapter()).ingest(
        [make_profile(linkedinUrl="https://www.linkedin.com/in/pending")]
    )
    [pending] = store.list_candidates(report.session_id)

    with pytest.raises(OverrideError):
        apply_manual_override(store, pending.id, "PASS", "too early")
    with pytest.raises(OverrideError):
        apply_manual_override(store, candidate.id, "REVIEW", "no such outcome")
    with pytest.raises(OverrideError):
        apply_manual_override(store, candidate.id, "REJECT", "   ")
    with pytest.raises(CandidateNotFoundError):
        apply_manual_override(store, "missing", "PASS", "reason")


def test_override_refuses_when_candidate_changes_underneath(store, evaluated, monkeypatch):
    candidate = evaluated(DecisionResult.PASS)
    read = store.get_candidate

    def read_then_retry(candidate_id):
        record = read(candidate_id)
        store.reset_candidate(candidate_id)
        return record

    monkeypatch.setattr(store, "get_candidate", read_then_retry)
    with pytest.raises(OverrideError):
        apply_manual_override(store, candidate.id, "REJECT", "Late correction")
    monkeypatch.undo()

    reloaded = store.get_candidate(candidate.id)
    assert reloaded.decision_result is DecisionResult.PENDING
    assert reloaded.manual_override is None
    assert store.get_session(candidate.session_id).counters() == SessionCounters(total_candidates=1)


def test_reconcile_repairs_drift(store, evaluated):
    candidate = evaluated(DecisionResult.PASS)
    store.adjust_session_counters(candidate.session_id, candidates_processed=3, rejected_candidates=2)

    report = reconcile_session_counters(store, candidate.session_id)

    assert report.changed is True
    assert report.before.candidates_processed == 4
    assert report.after.candidates_processed == 1
    assert report.after.passed_candidates == 1
    assert store.get_session(candidate.session_id).counters() == report.after
    assert reconcile_session_counters(store, candidate.session_id).changed is False
    with pytest.raises(SessionNotFoundError):
        reconcile_session_counters(store, "missing")


def test_backfill_countries(store):
    session = store.create_session(ScreeningConfig())
    store.create_candidates(
        session.id,
        [
            NewCandidate(
                candidate_id="a",
                linkedin_url="https://www.linkedin.com/in/a",
                profile_data={"linkedinUrl": "https://www.linkedin.com/in/a", "addressWithCountry": "Munich, Germany"},
            ),
            NewCandidate(
                candidate_id="b",
                linkedin_url="https://www.linkedin.com/in/b",
                profile_data={"linkedinUrl": "https://www.linkedin.com/in/b"},
            ),
        ],
    )

    report = backfill_countries(store)

    assert report.updated == 1
    assert report.skipped == 1
    assert report.countries == {"Germany": 1}
    assert [candidate.candidate_id for candidate in store.list_candidates_without_country()] == ["b"]
