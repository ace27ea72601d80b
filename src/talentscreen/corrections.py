"""Operator corrections: manual overrides, counter reconciliation and backfills."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

import pendulum
import structlog

from .core.country import extract_country_from_profile
from .errors import CandidateNotFoundError, OverrideError, SessionNotFoundError
from .schemas import DecisionResult, SessionCounters
from .schemas.session import PROCESSED_RESULTS, UNFINISHED_RESULTS
from .storage import ScreeningStore

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class OverrideResult:
    candidate_id: str
    original_decision: DecisionResult
    new_decision: DecisionResult
    reason: str


def apply_manual_override(
    store: ScreeningStore,
    candidate_id: str,
    new_decision: DecisionResult | str,
    reason: str,
    *,
    overridden_by: str = "admin",
    now_provider: Callable[[], Any] | None = None,
) -> OverrideResult:
    """Replace an evaluated candidate's outcome and move its counter bucket.

    The write is conditional on the candidate still holding the outcome read
    here; a concurrent retry or reprocess raises :class:`OverrideError`.
    """
    try:
        decision = DecisionResult(new_decision)
    except ValueError as exc:
        raise OverrideError(f"unknown decision: {new_decision!r}") from exc
    if decision not in (DecisionResult.PASS, DecisionResult.REJECT):
        raise OverrideError("new_decision must be PASS or REJECT")
    if not reason or not reason.strip():
        raise OverrideError("an override reason is required")

    candidate = store.get_candidate(candidate_id)
    if candidate is None:
        raise CandidateNotFoundError(candidate_id)
    original = candidate.decision_result
    if original in UNFINISHED_RESULTS:
        raise OverrideError(f"candidate {candidate_id} has not been evaluated yet ({original.value})")

    now = (now_provider or (lambda: pendulum.now("UTC")))()
    override = {
        "overridden": True,
        "originalDecision": original.value,
        "newDecision": decision.value,
        "overrideReason": reason,
        "overriddenBy": overridden_by,
        "overriddenAt": now.isoformat(),
        "candidateSnapshot": {
            "fullName": candidate.full_name,
            "currentTitle": candidate.current_title,
            "currentCompany": candidate.current_company,
            "location": candidate.location,
            "linkedinUrl": candidate.linkedin_url,
            "overallScore": candidate.overall_score,
            "finalDecision": candidate.final_decision,
            "secondaryEvaluation": candidate.secondary_evaluation,
        },
    }
    applied = store.set_manual_override(
        candidate_id,
        session_id=candidate.session_id,
        expected=original,
        decision_result=decision,
        override=override,
    )
    if not applied:
        raise OverrideError(
            f"candidate {candidate_id} changed state while the override was applied; reload and try again"
        )

    logger.info(
        "override.applied",
        candidate_id=candidate_id,
        session_id=candidate.session_id,
        original=original.value,
        new=decision.value,
        overridden_by=overridden_by,
    )
    return OverrideResult(
        candidate_id=candidate_id,
        original_decision=original,
        new_decision=decision,
        reason=reason,
    )


@dataclass(slots=True)
class ReconcileReport:
    session_id: str
    before: SessionCounters
    after: SessionCounters

    @property
    def changed(self) -> bool:
        return self.before != self.after


def reconcile_session_counters(store: ScreeningStore, session_id: str) -> ReconcileReport:
    """Recompute cached session counters from the candidate records."""
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)

    states = Counter(candidate.decision_result for candidate in store.list_candidates(session_id))
    after = SessionCounters(
        total_candidates=sum(states.values()),
        candidates_processed=sum(states[result] for result in PROCESSED_RESULTS),
        passed_candidates=states[DecisionResult.PASS],
        rejected_candidates=states[DecisionResult.REJECT],
        errored_candidates=states[DecisionResult.ERRORED],
    )
    before = session.counters()
    if before != after:
        store.set_session_counters(session_id, after)
        logger.warning(
            "reconcile.counters_drifted",
            session_id=session_id,
            before=before.model_dump(),
            after=after.model_dump(),
        )
    return ReconcileReport(session_id=session_id, before=before, after=after)


@dataclass(slots=True)
class BackfillReport:
    updated: int = 0
    skipped: int = 0
    countries: dict[str, int] = field(default_factory=dict)


def backfill_countries(store: ScreeningStore) -> BackfillReport:
    """Resolve and store a country for every candidate that lacks one."""
    report = BackfillReport()
    totals: Counter[str] = Counter()
    for candidate in store.list_candidates_without_country():
        country = extract_country_from_profile(candidate.profile_data)
        if not country:
            report.skipped += 1
            continue
        store.set_candidate_country(candidate.id, country)
        totals[country] += 1
        report.updated += 1
    report.countries = dict(totals)
    logger.info("backfill.countries", updated=report.updated, skipped=report.skipped)
    return report


__all__ = [
    "BackfillReport",
    "OverrideResult",
    "ReconcileReport",
    "apply_manual_override",
    "backfill_countries",
    "reconcile_session_counters",
]
