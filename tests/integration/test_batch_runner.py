from __future__ import annotations

from pathlib import Path

import pytest

from talentscreen.adapters import LinkedInProfileAdapter
from talentscreen.core import LanguageChecker, PrimaryEvaluator, SecondaryEvaluator
from talentscreen.corrections import reconcile_session_counters
from talentscreen.enrichment import CompanyEnricher
from talentscreen.errors import SessionNotFoundError
from talentscreen.pipeline import BatchRunner, CandidateProcessor, ProfileIngestor
from talentscreen.schemas import DecisionResult, ScreeningConfig, SessionStatus
from talentscreen.storage import SqlScreeningStore


class FailingForChecker(LanguageChecker):
    def __init__(self, slug: str) -> None:
        super().__init__()
        self._slug = slug

    def check(self, profile, target_country=None):
        if profile.linkedin_url.endswith(self._slug):
            raise RuntimeError(f"cannot check {self._slug}")
        return super().check(profile, target_country)


class FlakyStore(SqlScreeningStore):
    """Raises ``OSError`` the first time each named write is attempted."""

    def __init__(self, url: str, *, fail_on: set[str]) -> None:
        super().__init__(url)
        self._fail_on = set(fail_on)

    def _trip(self, name: str) -> None:
        if name in self._fail_on:
            self._fail_on.discard(name)
            raise OSError(f"{name}: connection reset")

    def _adjust_counters(self, session, session_id, deltas):
        if deltas.get("passed_candidates", 0) > 0:
            self._trip("passed_counter")
        super()._adjust_counters(session, session_id, deltas)

    def complete_candidate(self, candidate_id, **kwargs):
        self._trip("complete_candidate")
        return super().complete_candidate(candidate_id, **kwargs)

    def fail_candidate(self, candidate_id, **kwargs):
        self._trip("fail_candidate")
        return super().fail_candidate(candidate_id, **kwargs)


class RivalClaimStore(SqlScreeningStore):
    """Lets another runner claim the first listed candidate before it is processed."""

    def list_claimable_candidates(self, session_id, *, limit, stale_before):
        page = super().list_claimable_candidates(session_id, limit=limit, stale_before=stale_before)
        if page:
            now = stale_before.add(seconds=600)
            self.claim_candidate(page[0].id, token="rival", now=now, stale_before=stale_before)
        return page


def profiles(make_profile, *slugs):
    return [
        make_profile(linkedinUrl=f"https://www.linkedin.com/in/{slug}", firstName=slug.title())
        for slug in slugs
    ]


def build_runner(store, llm, search, fixed_now, *, checker=None, page_size=2, max_workers=1):
    processor = CandidateProcessor(
        store=store,
        language_checker=checker or LanguageChecker(),
        enricher=CompanyEnricher(search),
        primary=PrimaryEvaluator(llm),
        secondary=SecondaryEvaluator(llm),
        now_provider=lambda: fixed_now,
    )
    return BatchRunner(
        store=store,
        processor=processor,
        page_size=page_size,
        max_workers=max_workers,
        now_provider=lambda: fixed_now,
    )


def ingest(store, items):
    ingestor = ProfileIngestor(store=store, adapter=LinkedInProfileAdapter())
    return ingestor.ingest(items, config=ScreeningConfig()).session_id


def test_runner_pages_until_completed(store, make_profile, fake_llm, fake_search, primary_response, fixed_now):
    session_id = ingest(store, profiles(make_profile, "ana", "ben", "cai"))
    llm = fake_llm([primary_response("PASS", 80), primary_response("REJECT", 30), primary_response("PASS", 77)])
    runner = build_runner(store, llm, fake_search(), fixed_now)

    first = runner.run(session_id)
    session = store.get_session(session_id)
    assert (first.status, first.processed, first.remaining) == ("processing", 2, 1)
    assert session.status is SessionStatus.PROCESSING
    assert session.started_at is not None

    second = runner.run(session_id)
    assert (second.status, second.processed, second.remaining) == ("processing", 1, 0)

    third = runner.run(session_id)
    assert (third.status, third.processed, third.remaining) == ("completed", 0, 0)
    session = store.get_session(session_id)
    assert session.status is SessionStatus.COMPLETED
    assert session.completed_at is not None
    assert session.passed_candidates == 2
    assert session.rejected_candidates == 1
    assert session.counters().is_consistent()


def test_failed_candidate_does_not_abort_batch(store, make_profile, fake_llm, fake_search, primary_response, fixed_now):
    session_id = ingest(store, profiles(make_profile, "ana", "ben"))
    runner = build_runner(
        store, fake_llm([primary_response("PASS", 80)]), fake_search(), fixed_now, checker=FailingForChecker("ana")
    )

    report = runner.run(session_id)

    assert report.processed == 2
    assert [result.success for result in report.results] == [False, True]
    states = {c.full_name: c.decision_result for c in store.list_candidates(session_id)}
    assert states == {"Ana Schmidt": DecisionResult.ERRORED, "Ben Schmidt": DecisionResult.PASS}
    assert runner.run(session_id).status == "completed"
    counters = store.get_session(session_id).counters()
    assert counters.candidates_processed == 2
    assert counters.errored_candidates == 1
    assert counters.is_consistent()


def test_leased_candidates_keep_session_open(store, make_profile, fake_llm, fake_search, fixed_now):
    session_id = ingest(store, profiles(make_profile, "ana"))
    [candidate] = store.list_candidates(session_id)
    store.claim_candidate(candidate.id, token="other", now=fixed_now, stale_before=fixed_now.subtract(seconds=600))

    report = build_runner(store, fake_llm(), fake_search(), fixed_now).run(session_id)

    assert (report.status, report.processed, report.remaining) == ("processing", 0, 1)
    assert store.get_session(session_id).status is SessionStatus.PROCESSING


def test_expired_lease_is_reclaimed(store, make_profile, fake_llm, fake_search, primary_response, fixed_now):
    session_id = ingest(store, profiles(make_profile, "ana"))
    [candidate] = store.list_candidates(session_id)
    crashed_at = fixed_now.subtract(minutes=30)
    store.claim_candidate(candidate.id, token="dead", now=crashed_at, stale_before=crashed_at.subtract(seconds=600))

    report = build_runner(store, fake_llm([primary_response("PASS", 80)]), fake_search(), fixed_now).run(session_id)

    assert report.processed == 1
    assert store.get_candidate(candidate.id).decision_result is DecisionResult.PASS


def test_bounded_worker_pool(tmp_path: Path, make_profile, fake_llm, fake_search, primary_response, fixed_now):
    store = SqlScreeningStore(f"sqlite:///{tmp_path / 'screening.db'}")
    session_id = ingest(store, profiles(make_profile, "ana", "ben", "cai", "dee"))
    llm = fake_llm([primary_response("PASS", 80) for _ in range(4)])
    runner = build_runner(store, llm, fake_search(), fixed_now, page_size=4, max_workers=2)

    report = runner.run(session_id)

    assert report.processed == 4
    assert all(result.success for result in report.results)
    assert store.get_session(session_id).passed_candidates == 4


def test_unknown_session(store, fake_llm, fake_search, fixed_now):
    with pytest.raises(SessionNotFoundError):
        build_runner(store, fake_llm(), fake_search(), fixed_now).run("missing")


def test_counter_failure_rolls_back_the_decision(make_profile, fake_llm, fake_search, primary_response, fixed_now):
    store = FlakyStore("sqlite://", fail_on={"passed_counter"})
    session_id = ingest(store, profiles(make_profile, "ana"))
    runner = build_runner(store, fake_llm([primary_response("PASS", 80)]), fake_search(), fixed_now)

    [result] = runner.run(session_id).results

    assert result.success is False
    assert "connection reset" in result.error
    [candidate] = store.list_candidates(session_id)
    assert candidate.decision_result is DecisionResult.ERRORED
    assert candidate.final_decision is None
    counters = store.get_session(session_id).counters()
    assert (counters.candidates_processed, counters.passed_candidates, counters.errored_candidates) == (1, 0, 1)
    assert reconcile_session_counters(store, session_id).changed is False
    assert len(store.list_session_errors(session_id)) == 1


def test_unrecorded_failure_does_not_abort_batch(make_profile, fake_llm, fake_search, primary_response, fixed_now):
    store = FlakyStore("sqlite://", fail_on={"complete_candidate", "fail_candidate"})
    session_id = ingest(store, profiles(make_profile, "ana", "ben"))
    llm = fake_llm([primary_response("PASS", 80), primary_response("PASS", 75), primary_response("PASS", 81)])

    report = build_runner(store, llm, fake_search(), fixed_now).run(session_id)

    assert [result.success for result in report.results] == [False, True]
    states = {c.full_name: c.decision_result for c in store.list_candidates(session_id)}
    assert states == {"Ana Schmidt": DecisionResult.IN_PROGRESS, "Ben Schmidt": DecisionResult.PASS}
    assert report.remaining == 1
    assert store.get_session(session_id).counters().is_consistent()

    later = build_runner(store, llm, fake_search(), fixed_now.add(minutes=11)).run(session_id)

    assert later.processed == 1
    assert store.get_session(session_id).passed_candidates == 2


def test_lost_claims_are_not_counted_as_processed(make_profile, fake_llm, fake_search, primary_response, fixed_now):
    store = RivalClaimStore("sqlite://")
    session_id = ingest(store, profiles(make_profile, "ana", "ben"))

    report = build_runner(store, fake_llm([primary_response("PASS", 80)]), fake_search(), fixed_now).run(session_id)

    assert (report.processed, report.claims_lost, report.remaining) == (1, 1, 1)
    assert [result.claim_lost for result in report.results] == [True, False]
