"""Persistence contract for screening sessions and candidates."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ..schemas import (
    CandidateRecord,
    DecisionResult,
    EvaluationUpdate,
    NewCandidate,
    ScreeningConfig,
    SessionCounters,
    SessionRecord,
    SessionStatus,
)


@runtime_checkable
class ScreeningStore(Protocol):
    """Storage operations used by the orchestrator, batch runner and tooling.

    Counter adjustments are applied as atomic increments in storage. Every
    candidate state change (complete, fail, reset, override) commits together
    with its counter deltas, and the conditional ones report whether they took
    effect.
    """

    def create_session(self, config: ScreeningConfig, *, created_by: str = "user") -> SessionRecord:
        ...

    def get_session(self, session_id: str) -> SessionRecord | None:
        ...

    def set_session_status(
        self,
        session_id: str,
        status: SessionStatus,
        *,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> None:
        ...

    def adjust_session_counters(self, session_id: str, **deltas: int) -> None:
        ...

    def set_session_counters(self, session_id: str, counters: SessionCounters) -> None:
        ...

    def list_session_errors(self, session_id: str) -> list[dict[str, Any]]:
        ...

    def create_candidates(self, session_id: str, candidates: list[NewCandidate]) -> int:
        ...

    def get_candidate(self, candidate_id: str) -> CandidateRecord | None:
        ...

    def list_candidates(
        self,
        session_id: str,
        *,
        decision_result: DecisionResult | None = None,
    ) -> list[CandidateRecord]:
        ...

    def list_claimable_candidates(
        self,
        session_id: str,
        *,
        limit: int,
        stale_before: datetime,
    ) -> list[CandidateRecord]:
        ...

    def count_unfinished(self, session_id: str) -> int:
        ...

    def claim_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        ...

    def complete_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        session_id: str,
        evaluation: EvaluationUpdate,
    ) -> bool:
        ...

    def fail_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        session_id: str,
        message: str,
        stack: str,
    ) -> bool:
        ...

    def reset_candidate(self, candidate_id: str) -> DecisionResult | None:
        ...

    def set_manual_override(
        self,
        candidate_id: str,
        *,
        session_id: str,
        expected: DecisionResult,
        decision_result: DecisionResult,
        override: dict[str, Any],
    ) -> bool:
        ...

    def list_overrides(self) -> list[CandidateRecord]:
        ...

    def list_candidates_without_country(self) -> list[CandidateRecord]:
        ...

    def set_candidate_country(self, candidate_id: str, country: str) -> None:
        ...


__all__ = ["ScreeningStore"]
