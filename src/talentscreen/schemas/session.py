"""Screening session and candidate record schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .evaluation import (
    FINAL_DECISION_ADAPTER,
    SECONDARY_ADAPTER,
    EnrichedCompany,
    FinalDecision,
    LanguageCheckResult,
    SecondaryEvaluation,
)
from .profile import LinkedInProfile


class DecisionResult(str, Enum):
    """Persisted candidate state. REVIEW is never stored."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PASS = "PASS"
    REJECT = "REJECT"
    ERRORED = "ERRORED"


UNFINISHED_RESULTS = (DecisionResult.PENDING, DecisionResult.IN_PROGRESS)
PROCESSED_RESULTS = (DecisionResult.PASS, DecisionResult.REJECT, DecisionResult.ERRORED)


class SessionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class ScreeningConfig(BaseModel):
    """Per-session parameters consumed by the evaluator prompts."""

    enable_company_enrichment: bool = True
    target_role: Literal["CTO", "VP_Engineering", "Engineering_Manager", "Custom"] = "CTO"
    target_country: str | None = None
    custom_criteria: str | None = None
    minimum_years_experience: float = Field(7, ge=0)
    require_vp_or_above: bool = False
    require_startup_experience: bool = False

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class SessionCounters(BaseModel):
    """Cached aggregate of candidate states for one session."""

    total_candidates: int = 0
    candidates_processed: int = 0
    passed_candidates: int = 0
    rejected_candidates: int = 0
    errored_candidates: int = 0

    def is_consistent(self) -> bool:
        return self.candidates_processed == (
            self.passed_candidates + self.rejected_candidates + self.errored_candidates
        )


class SessionRecord(SessionCounters):
    id: str
    created_by: str = "user"
    created_at: datetime | None = None
    config: ScreeningConfig = Field(default_factory=ScreeningConfig)
    status: SessionStatus = SessionStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def counters(self) -> SessionCounters:
        return SessionCounters.model_validate(self.model_dump(include=set(SessionCounters.model_fields)))


class NewCandidate(BaseModel):
    """Candidate row to be created at ingestion time."""

    candidate_id: str
    linkedin_url: str
    full_name: str = ""
    current_title: str = ""
    current_company: str = ""
    location: str = ""
    country: str | None = None
    profile_data: dict[str, Any]


class CandidateRecord(NewCandidate):
    """Stored candidate: raw payload plus evaluation outputs."""

    id: str
    session_id: str
    decision_result: DecisionResult = DecisionResult.PENDING
    overall_score: float | None = None
    language_check: dict[str, Any] | None = None
    enriched_companies: list[dict[str, Any]] | None = None
    final_decision: dict[str, Any] | None = None
    secondary_evaluation: dict[str, Any] | None = None
    manual_override: dict[str, Any] | None = None
    processing_time_ms: int | None = None
    evaluated_at: datetime | None = None
    claimed_at: datetime | None = None
    claim_token: str | None = None

    @property
    def profile(self) -> LinkedInProfile:
        return LinkedInProfile.model_validate(self.profile_data)

    def decision(self) -> Any:
        """Typed view of the stored final decision, if any."""
        if self.final_decision is None:
            return None
        return FINAL_DECISION_ADAPTER.validate_python(self.final_decision)

    def secondary(self) -> Any:
        if self.secondary_evaluation is None:
            return None
        return SECONDARY_ADAPTER.validate_python(self.secondary_evaluation)


class EvaluationUpdate(BaseModel):
    """Full overwrite of a candidate's evaluation fields, written atomically."""

    language_check: LanguageCheckResult
    enriched_companies: list[EnrichedCompany]
    final_decision: FinalDecision
    secondary_evaluation: Optional[SecondaryEvaluation] = None
    decision_result: DecisionResult
    overall_score: float
    processing_time_ms: int
    evaluated_at: datetime

    def to_columns(self) -> dict[str, Any]:
        return {
            "language_check": self.language_check.model_dump(mode="json", by_alias=True),
            "enriched_companies": [
                company.model_dump(mode="json", by_alias=True)
                for company in self.enriched_companies
            ],
            "final_decision": self.final_decision.model_dump(mode="json", by_alias=True),
            "secondary_evaluation": (
                self.secondary_evaluation.model_dump(mode="json", by_alias=True)
                if self.secondary_evaluation is not None
                else None
            ),
            "decision_result": self.decision_result,
            "overall_score": self.overall_score,
            "processing_time_ms": self.processing_time_ms,
            "evaluated_at": self.evaluated_at,
        }
