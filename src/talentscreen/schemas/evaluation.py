"""Evaluation outputs: language check, company enrichment and LLM decisions."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
)
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
_FROZEN_CAMEL = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    frozen=True,
)

Score = Annotated[float, Field(ge=0, le=100)]

InterviewRecommendation = Literal[
    "Highly Recommended",
    "Recommended",
    "Consider",
    "Not Recommended",
]


class EnglishEvidence(str, Enum):
    """How English proficiency was established, strongest first."""

    EXPLICIT = "explicit"
    LISTED_WITHOUT_LEVEL = "listed_without_level"
    ENGLISH_SPEAKING_EDUCATION = "english_speaking_education"
    INTERNATIONAL_EMPLOYER = "international_employer"
    PROFILE_TEXT = "profile_text"
    ASSUMED = "assumed"
    NONE = "none"


class LanguageCheckResult(BaseModel):
    """Advisory language assessment handed to the evaluators."""

    has_english_proficiency: bool
    english_level: str
    english_inferred: bool
    english_evidence: EnglishEvidence
    has_native_language_proficiency: bool
    native_language: str
    native_inferred: bool
    native_skipped: bool
    current_country: str | None = None
    confidence: int = Field(ge=0, le=100)
    notes: list[str] = Field(default_factory=list)
    reasoning: str
    passed: bool

    model_config = _FROZEN_CAMEL


class EnrichedCompany(BaseModel):
    """Best-effort company background gathered from web search."""

    name: str
    description: str | None = None
    website: str | None = None
    search_timestamp: str | None = None
    enriched: bool = True

    model_config = _CAMEL


class DetailedAnalysis(BaseModel):
    """Sub-score breakdown, every dimension on a 0-100 scale."""

    technical_depth: Score
    leadership_capability: Score
    customer_facing: Score
    cultural_fit: Score
    hands_on_current: Score
    builder_dna: Score = Field(0, alias="builderDNA")
    startup_fit: Score = 0
    innovation_currency: Score = 0

    model_config = _FROZEN_CAMEL

    @classmethod
    def zero(cls) -> "DetailedAnalysis":
        return cls(
            technical_depth=0,
            leadership_capability=0,
            customer_facing=0,
            cultural_fit=0,
            hands_on_current=0,
        )


class _DecisionBase(BaseModel):
    reasoning: str = Field(min_length=1)
    overall_score: Score
    confidence: Score
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    suggested_interview_questions: list[str] = Field(default_factory=list)
    interview_recommendation: InterviewRecommendation
    detailed_analysis: DetailedAnalysis
    similar_to_known_profiles: bool | None = None
    review_reason: str | None = None
    short_reject_reason: str | None = None
    escalated: bool = False

    model_config = _FROZEN_CAMEL


class PassDecision(_DecisionBase):
    decision: Literal["PASS"] = "PASS"


class ReviewDecision(_DecisionBase):
    """Borderline outcome; only ever produced by the primary stage."""

    decision: Literal["REVIEW"] = "REVIEW"
    review_reason: str = Field(min_length=1)


class RejectDecision(_DecisionBase):
    decision: Literal["REJECT"] = "REJECT"
    short_reject_reason: str = Field(min_length=1)


Decision = Annotated[
    Union[PassDecision, ReviewDecision, RejectDecision],
    Field(discriminator="decision"),
]
FinalDecision = Annotated[
    Union[PassDecision, RejectDecision],
    Field(discriminator="decision"),
]


class _SecondaryBase(BaseModel):
    reasoning: str = Field(min_length=1)
    key_findings: list[str] = Field(default_factory=list)
    builder_dna_evidence: str = Field("", alias="builderDNAEvidence")
    innovation_currency_assessment: str = ""
    overqualification_assessment: str = ""
    pattern_match: str = ""
    updated_score: Score
    confidence: Score
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    short_reject_reason: str | None = None

    model_config = _FROZEN_CAMEL


class SecondaryPass(_SecondaryBase):
    final_decision: Literal["PASS"] = "PASS"


class SecondaryReject(_SecondaryBase):
    final_decision: Literal["REJECT"] = "REJECT"
    short_reject_reason: str = Field(min_length=1)


def _secondary_tag(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("finalDecision", value.get("final_decision"))
    return getattr(value, "final_decision", None)


SecondaryEvaluation = Annotated[
    Union[
        Annotated[SecondaryPass, Tag("PASS")],
        Annotated[SecondaryReject, Tag("REJECT")],
    ],
    Discriminator(_secondary_tag),
]

DECISION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Decision)
FINAL_DECISION_ADAPTER: TypeAdapter[Any] = TypeAdapter(FinalDecision)
SECONDARY_ADAPTER: TypeAdapter[Any] = TypeAdapter(SecondaryEvaluation)
