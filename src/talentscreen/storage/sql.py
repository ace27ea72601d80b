"""SQLAlchemy-backed screening store."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import pendulum
import structlog
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    create_engine,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

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
from ..schemas.session import UNFINISHED_RESULTS

Base = declarative_base()

COUNTER_COLUMNS = tuple(SessionCounters.model_fields)

# Counter bucket holding a candidate in each finished state.
_BUCKETS = {
    DecisionResult.PASS: "passed_candidates",
    DecisionResult.REJECT: "rejected_candidates",
    DecisionResult.ERRORED: "errored_candidates",
}


def _transition_deltas(prior: DecisionResult, new: DecisionResult) -> dict[str, int]:
    """Counter deltas for moving one candidate from ``prior`` to ``new``."""
    deltas: dict[str, int] = {}
    for state, step in ((prior, -1), (new, 1)):
        bucket = _BUCKETS.get(state)
        if bucket is None:
            continue
        deltas["candidates_processed"] = deltas.get("candidates_processed", 0) + step
        deltas[bucket] = deltas.get(bucket, 0) + step
    return deltas


# Evaluation-derived columns cleared when a candidate is reset for retry.
_EVALUATION_COLUMNS = (
    "language_check",
    "enriched_companies",
    "final_decision",
    "secondary_evaluation",
    "overall_score",
    "processing_time_ms",
    "evaluated_at",
    "claimed_at",
    "claim_token",
)


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return pendulum.now("UTC")


class ScreeningSessionRow(Base):
    __tablename__ = "screening_sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    created_by = Column(String, nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    config = Column(JSON, nullable=False)
    status = Column(String(16), nullable=False, default=SessionStatus.PENDING.value)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    total_candidates = Column(Integer, nullable=False, default=0)
    candidates_processed = Column(Integer, nullable=False, default=0)
    passed_candidates = Column(Integer, nullable=False, default=0)
    rejected_candidates = Column(Integer, nullable=False, default=0)
    errored_candidates = Column(Integer, nullable=False, default=0)


class CandidateEvaluationRow(Base):
    __tablename__ = "candidate_evaluations"
    __table_args__ = (UniqueConstraint("session_id", "candidate_id", name="uq_session_candidate"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    session_id = Column(String(36), ForeignKey("screening_sessions.id"), nullable=False, index=True)
    candidate_id = Column(String, nullable=False)
    linkedin_url = Column(String, nullable=False)
    full_name = Column(String, nullable=False, default="")
    current_title = Column(String, nullable=False, default="")
    current_company = Column(String, nullable=False, default="")
    location = Column(String, nullable=False, default="")
    country = Column(String, nullable=True, index=True)
    profile_data = Column(JSON, nullable=False)
    decision_result = Column(String(16), nullable=False, default=DecisionResult.PENDING.value, index=True)
    overall_score = Column(Float, nullable=True)
    language_check = Column(JSON(none_as_null=True), nullable=True)
    enriched_companies = Column(JSON(none_as_null=True), nullable=True)
    final_decision = Column(JSON(none_as_null=True), nullable=True)
    secondary_evaluation = Column(JSON(none_as_null=True), nullable=True)
    manual_override = Column(JSON(none_as_null=True), nullable=True)
    processing_time_ms = Column(Integer, nullable=True)
    evaluated_at = Column(DateTime(timezone=True), nullable=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    claim_token = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class SessionErrorRow(Base):
    __tablename__ = "session_errors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("screening_sessions.id"), nullable=False, index=True)
    candidate_id = Column(String(36), nullable=False)
    message = Column(Text, nullable=False)
    stack = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


def _row_dict(row: Any) -> dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _session_record(row: ScreeningSessionRow) -> SessionRecord:
    return SessionRecord.model_validate(_row_dict(row))


def _candidate_record(row: CandidateEvaluationRow) -> CandidateRecord:
    return CandidateRecord.model_validate(_row_dict(row))


class SqlScreeningStore:
    """Relational store; every public method runs in its own transaction."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **engine_kwargs)
        Base.metadata.create_all(self._engine)
        self._sessions = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        self._logger = structlog.get_logger(__name__)

    # Sessions

    def create_session(self, config: ScreeningConfig, *, created_by: str = "user") -> SessionRecord:
        row = ScreeningSessionRow(
            id=_new_id(),
            created_by=created_by,
            created_at=_now(),
            config=config.model_dump(mode="json", by_alias=True),
            status=SessionStatus.PENDING.value,
            **{name: 0 for name in COUNTER_COLUMNS},
        )
        with self._sessions.begin() as session:
            session.add(row)
            session.flush()
            record = _session_record(row)
        self._logger.info("storage.session_created", session_id=record.id)
        return record

    def get_session(self, session_id: str) -> SessionRecord | None:
        with self._sessions() as session:
            row = session.get(ScreeningSessionRow, session_id)
            return _session_record(row) if row is not None else None

    def set_session_status(
        self,
        session_id: str,
        status: SessionStatus,
        *,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> None:
        values: dict[str, Any] = {"status": SessionStatus(status).value}
        if started_at is not None:
            values["started_at"] = started_at
        if completed_at is not None:
            values["completed_at"] = completed_at
        with self._sessions.begin() as session:
            session.execute(
                update(ScreeningSessionRow)
                .where(ScreeningSessionRow.id == session_id)
                .values(**values)
            )

    def _adjust_counters(self, session: Any, session_id: str, deltas: dict[str, int]) -> None:
        unknown = set(deltas) - set(COUNTER_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown session counters: {sorted(unknown)}")
        values = {
            name: getattr(ScreeningSessionRow, name) + delta
            for name, delta in deltas.items()
            if delta
        }
        if not values:
            return
        session.execute(
            update(ScreeningSessionRow)
            .where(ScreeningSessionRow.id == session_id)
            .values(values)
        )

    def adjust_session_counters(self, session_id: str, **deltas: int) -> None:
        """Apply ``column = column + delta`` for each named counter in one statement."""
        with self._sessions.begin() as session:
            self._adjust_counters(session, session_id, deltas)

    def set_session_counters(self, session_id: str, counters: SessionCounters) -> None:
        with self._sessions.begin() as session:
            session.execute(
                update(ScreeningSessionRow)
                .where(ScreeningSessionRow.id == session_id)
                .values(**counters.model_dump())
            )

    def list_session_errors(self, session_id: str) -> list[dict[str, Any]]:
        with self._sessions() as session:
            rows = session.scalars(
                select(SessionErrorRow)
                .where(SessionErrorRow.session_id == session_id)
                .order_by(SessionErrorRow.id)
            ).all()
            return [
                {
                    "candidate_id": row.candidate_id,
                    "message": row.message,
                    "stack": row.stack,
                    "timestamp": row.created_at,
                }
                for row in rows
            ]

    # Candidates

    def create_candidates(self, session_id: str, candidates: list[NewCandidate]) -> int:
        """Insert candidates, skipping ids already present in the session."""
        created_at = _now()
        with self._sessions.begin() as session:
            seen = set(
                session.scalars(
                    select(CandidateEvaluationRow.candidate_id).where(
                        CandidateEvaluationRow.session_id == session_id
                    )
                ).all()
            )
            rows = []
            for candidate in candidates:
                if candidate.candidate_id in seen:
                    continue
                seen.add(candidate.candidate_id)
                rows.append(
                    CandidateEvaluationRow(
                        id=_new_id(),
                        session_id=session_id,
                        decision_result=DecisionResult.PENDING.value,
                        created_at=created_at,
                        **candidate.model_dump(),
                    )
                )
            session.add_all(rows)
        return len(rows)

    def get_candidate(self, candidate_id: str) -> CandidateRecord | None:
        with self._sessions() as session:
            row = session.get(CandidateEvaluationRow, candidate_id)
            return _candidate_record(row) if row is not None else None

    def list_candidates(
        self,
        session_id: str,
        *,
        decision_result: DecisionResult | None = None,
    ) -> list[CandidateRecord]:
        query = select(CandidateEvaluationRow).where(CandidateEvaluationRow.session_id == session_id)
        if decision_result is not None:
            query = query.where(
                CandidateEvaluationRow.decision_result == DecisionResult(decision_result).value
            )
        query = query.order_by(CandidateEvaluationRow.created_at, CandidateEvaluationRow.candidate_id)
        with self._sessions() as session:
            return [_candidate_record(row) for row in session.scalars(query).all()]

    def _claimable(self, stale_before: datetime):
        return or_(
            CandidateEvaluationRow.decision_result == DecisionResult.PENDING.value,
            and_(
                CandidateEvaluationRow.decision_result == DecisionResult.IN_PROGRESS.value,
                CandidateEvaluationRow.claimed_at < stale_before,
            ),
        )

    def list_claimable_candidates(
        self,
        session_id: str,
        *,
        limit: int,
        stale_before: datetime,
    ) -> list[CandidateRecord]:
        """PENDING candidates plus IN_PROGRESS ones whose lease has expired."""
        query = (
            select(CandidateEvaluationRow)
            .where(CandidateEvaluationRow.session_id == session_id)
            .where(self._claimable(stale_before))
            .order_by(CandidateEvaluationRow.created_at, CandidateEvaluationRow.candidate_id)
            .limit(limit)
        )
        with self._sessions() as session:
            return [_candidate_record(row) for row in session.scalars(query).all()]

    def count_unfinished(self, session_id: str) -> int:
        with self._sessions() as session:
            return session.scalar(
                select(func.count())
                .select_from(CandidateEvaluationRow)
                .where(CandidateEvaluationRow.session_id == session_id)
                .where(
                    CandidateEvaluationRow.decision_result.in_(
                        [result.value for result in UNFINISHED_RESULTS]
                    )
                )
            ) or 0

    def claim_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        """Atomically move a claimable candidate to IN_PROGRESS under ``token``."""
        with self._sessions.begin() as session:
            result = session.execute(
                update(CandidateEvaluationRow)
                .where(CandidateEvaluationRow.id == candidate_id)
                .where(self._claimable(stale_before))
                .values(
                    decision_result=DecisionResult.IN_PROGRESS.value,
                    claimed_at=now,
                    claim_token=token,
                )
            )
            return result.rowcount == 1

    def _held(self, candidate_id: str, token: str):
        return and_(
            CandidateEvaluationRow.id == candidate_id,
            CandidateEvaluationRow.claim_token == token,
            CandidateEvaluationRow.decision_result == DecisionResult.IN_PROGRESS.value,
        )

    def complete_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        session_id: str,
        evaluation: EvaluationUpdate,
    ) -> bool:
        """Write the evaluation and count it against the session in one transaction."""
        values = evaluation.to_columns()
        outcome = DecisionResult(values["decision_result"])
        values["decision_result"] = outcome.value
        with self._sessions.begin() as session:
            result = session.execute(
                update(CandidateEvaluationRow).where(self._held(candidate_id, token)).values(**values)
            )
            if result.rowcount != 1:
                return False
            self._adjust_counters(
                session, session_id, _transition_deltas(DecisionResult.IN_PROGRESS, outcome)
            )
        return True

    def fail_candidate(
        self,
        candidate_id: str,
        *,
        token: str,
        session_id: str,
        message: str,
        stack: str,
    ) -> bool:
        """Log the failure and, while the claim is held, mark the candidate ERRORED.

        The error entry is written either way; the state change and its counter
        update only when ``token`` still owns the candidate.
        """
        with self._sessions.begin() as session:
            session.add(
                SessionErrorRow(
                    session_id=session_id,
                    candidate_id=candidate_id,
                    message=message,
                    stack=stack,
                    created_at=_now(),
                )
            )
            result = session.execute(
                update(CandidateEvaluationRow)
                .where(self._held(candidate_id, token))
                .values(decision_result=DecisionResult.ERRORED.value)
            )
            if result.rowcount != 1:
                return False
            self._adjust_counters(
                session, session_id, _transition_deltas(DecisionResult.IN_PROGRESS, DecisionResult.ERRORED)
            )
        return True

    def reset_candidate(self, candidate_id: str) -> DecisionResult | None:
        """Return the candidate to PENDING and release its counter bucket; returns the prior state."""
        with self._sessions.begin() as session:
            row = session.get(CandidateEvaluationRow, candidate_id, with_for_update=True)
            if row is None:
                return None
            prior = DecisionResult(row.decision_result)
            row.decision_result = DecisionResult.PENDING.value
            for column in _EVALUATION_COLUMNS:
                setattr(row, column, None)
            session.flush()
            self._adjust_counters(
                session, row.session_id, _transition_deltas(prior, DecisionResult.PENDING)
            )
            return prior

    def set_manual_override(
        self,
        candidate_id: str,
        *,
        session_id: str,
        expected: DecisionResult,
        decision_result: DecisionResult,
        override: dict[str, Any],
    ) -> bool:
        """Replace the outcome only if the candidate is still in ``expected``; moves counters with it."""
        expected = DecisionResult(expected)
        decision_result = DecisionResult(decision_result)
        with self._sessions.begin() as session:
            result = session.execute(
                update(CandidateEvaluationRow)
                .where(CandidateEvaluationRow.id == candidate_id)
                .where(CandidateEvaluationRow.decision_result == expected.value)
                .values(decision_result=decision_result.value, manual_override=override)
            )
            if result.rowcount != 1:
                return False
            self._adjust_counters(session, session_id, _transition_deltas(expected, decision_result))
        return True

    def list_overrides(self) -> list[CandidateRecord]:
        with self._sessions() as session:
            rows = session.scalars(
                select(CandidateEvaluationRow)
                .where(CandidateEvaluationRow.manual_override.is_not(None))
                .order_by(CandidateEvaluationRow.evaluated_at.desc())
            ).all()
            return [_candidate_record(row) for row in rows]

    def list_candidates_without_country(self) -> list[CandidateRecord]:
        with self._sessions() as session:
            rows = session.scalars(
                select(CandidateEvaluationRow).where(
                    or_(CandidateEvaluationRow.country.is_(None), CandidateEvaluationRow.country == "")
                )
            ).all()
            return [_candidate_record(row) for row in rows]

    def set_candidate_country(self, candidate_id: str, country: str) -> None:
        with self._sessions.begin() as session:
            session.execute(
                update(CandidateEvaluationRow)
                .where(CandidateEvaluationRow.id == candidate_id)
                .values(country=country)
            )


__all__ = [
    "Base",
    "CandidateEvaluationRow",
    "ScreeningSessionRow",
    "SessionErrorRow",
    "SqlScreeningStore",
]
