"""Pydantic schema definitions for profiles, evaluations and sessions."""

from __future__ import annotations

from .evaluation import (
    DECISION_ADAPTER,
    FINAL_DECISION_ADAPTER,
    SECONDARY_ADAPTER,
    DetailedAnalysis,
    EnglishEvidence,
    EnrichedCompany,
    LanguageCheckResult,
    PassDecision,
    RejectDecision,
    ReviewDecision,
    SecondaryPass,
    SecondaryReject,
)
from .profile import (
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    LinkedInProfile,
    SkillEntry,
)
from .session import (
    CandidateRecord,
    DecisionResult,
    EvaluationUpdate,
    NewCandidate,
    ScreeningConfig,
    SessionCounters,
    SessionRecord,
    SessionStatus,
)

__all__ = [
    "DECISION_ADAPTER",
    "FINAL_DECISION_ADAPTER",
    "SECONDARY_ADAPTER",
    "CandidateRecord",
    "DecisionResult",
    "DetailedAnalysis",
    "EducationEntry",
    "EnglishEvidence",
    "EnrichedCompany",
    "EvaluationUpdate",
    "ExperienceEntry",
    "LanguageCheckResult",
    "LanguageEntry",
    "LinkedInProfile",
    "NewCandidate",
    "PassDecision",
    "RejectDecision",
    "ReviewDecision",
    "ScreeningConfig",
    "SecondaryPass",
    "SecondaryReject",
    "SessionCounters",
    "SessionRecord",
    "SessionStatus",
    "SkillEntry",
]
