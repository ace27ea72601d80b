"""Primary LLM evaluation producing PASS / REVIEW / REJECT."""

from __future__ import annotations

from typing import Any, Iterable

import structlog

from ...llm import CompletionClient, request_structured
from ...schemas import (
    DECISION_ADAPTER,
    DetailedAnalysis,
    EnrichedCompany,
    LanguageCheckResult,
    LinkedInProfile,
    RejectDecision,
    ScreeningConfig,
)
from .prompts import render_primary_policy

SYSTEM_ERROR_REASONING = "AI Evaluation Failed - system error during processing"


def build_candidate_payload(
    *,
    profile: LinkedInProfile,
    companies: Iterable[EnrichedCompany],
    detailed: bool = False,
) -> dict[str, Any]:
    """Profile fields shared by both evaluation stages."""
    experience = []
    for exp in profile.experiences:
        entry: dict[str, Any] = {
            "title": exp.title,
            "companyName": exp.company_name,
            "startDate": exp.job_started_on,
            "endDate": exp.job_ended_on or "Present",
            "description": exp.job_description,
        }
        if detailed:
            entry["companySize"] = exp.company_size
            entry["companyIndustry"] = exp.company_industry
        experience.append(entry)

    return {
        "candidateName": profile.display_name,
        "currentRole": profile.job_title or "Unknown",
        "company": profile.company_name or "Unknown",
        "location": profile.address_country_only or "Unknown",
        "headline": profile.headline,
        "about": profile.about,
        "experience": experience,
        "education": [
            {
                "degreeName": edu.degree,
                "fieldOfStudy": edu.field_of_study,
                "schoolName": edu.school,
            }
            for edu in profile.educations
        ],
        "skills": [skill.label for skill in profile.skills],
        "companyContext": [
            {"name": company.name, "description": company.description}
            for company in companies
        ],
    }


def build_language_payload(check: LanguageCheckResult) -> dict[str, Any]:
    inferred = check.english_inferred or check.native_inferred
    return {
        "english": "PASS" if check.has_english_proficiency else "FAIL",
        "englishLevel": check.english_level,
        "englishEvidence": check.english_evidence.value,
        "native": "PASS" if check.has_native_language_proficiency else "FAIL",
        "nativeLanguage": check.native_language,
        "reasoning": check.reasoning,
        "confidence": check.confidence,
        "notes": (
            "Language proficiency was inferred from profile context and location"
            if inferred
            else "Language proficiency explicitly stated in profile"
        ),
        "inferenceNotes": check.notes,
    }


def failed_decision() -> RejectDecision:
    """Schema-valid stand-in returned whenever the primary stage fails."""
    return RejectDecision(
        reasoning=SYSTEM_ERROR_REASONING,
        overall_score=0,
        confidence=0,
        strengths=[],
        concerns=["System error during evaluation"],
        red_flags=["Evaluation failed"],
        interview_recommendation="Not Recommended",
        detailed_analysis=DetailedAnalysis.zero(),
        similar_to_known_profiles=False,
        short_reject_reason="Evaluation failed - system error",
    )


class PrimaryEvaluator:
    """First-pass LLM judge.

    Any exception, timeout or invalid response is turned into a synthetic
    REJECT with score 0 so persistence always receives a valid decision.
    """

    def __init__(self, client: CompletionClient) -> None:
        self._client = client
        self._logger = structlog.get_logger(__name__)

    def evaluate(
        self,
        *,
        profile: LinkedInProfile,
        language_check: LanguageCheckResult,
        companies: list[EnrichedCompany],
        config: ScreeningConfig | None = None,
    ) -> Any:
        config = config or ScreeningConfig()
        payload = build_candidate_payload(profile=profile, companies=companies)
        payload["languageCheck"] = build_language_payload(language_check)

        try:
            decision = request_structured(
                self._client,
                render_primary_policy(config),
                payload,
                DECISION_ADAPTER,
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.exception(
                "evaluation.primary_failed",
                linkedin_url=profile.linkedin_url,
                error=str(exc),
            )
            return failed_decision()

        self._logger.info(
            "evaluation.primary_completed",
            linkedin_url=profile.linkedin_url,
            decision=decision.decision,
            overall_score=decision.overall_score,
        )
        return decision


__all__ = [
    "PrimaryEvaluator",
    "build_candidate_payload",
    "build_language_payload",
    "failed_decision",
]
