"""Escalation pass that resolves a REVIEW into a binding PASS or REJECT."""

from __future__ import annotations

from typing import Any

import structlog

from ...llm import CompletionClient, request_structured
from ...schemas import (
    SECONDARY_ADAPTER,
    EnrichedCompany,
    LanguageCheckResult,
    LinkedInProfile,
    PassDecision,
    RejectDecision,
    ReviewDecision,
    ScreeningConfig,
    SecondaryReject,
)
from .primary import build_candidate_payload
from .prompts import render_secondary_policy


def failed_secondary() -> SecondaryReject:
    """Conservative outcome when the escalation stage itself fails."""
    return SecondaryReject(
        reasoning="Secondary evaluation failed due to system error. Defaulting to reject for safety.",
        key_findings=["System error during evaluation"],
        builder_dna_evidence="Unable to assess",
        innovation_currency_assessment="Unable to assess",
        overqualification_assessment="Unable to assess",
        pattern_match="None",
        updated_score=0,
        confidence=0,
        short_reject_reason="Secondary evaluation failed - system error",
    )


class SecondaryEvaluator:
    """Deeper second LLM pass, run only for primary REVIEW outcomes."""

    def __init__(self, client: CompletionClient) -> None:
        self._client = client
        self._logger = structlog.get_logger(__name__)

    def evaluate(
        self,
        *,
        profile: LinkedInProfile,
        language_check: LanguageCheckResult,
        companies: list[EnrichedCompany],
        initial: ReviewDecision,
        config: ScreeningConfig | None = None,
    ) -> Any:
        config = config or ScreeningConfig()
        payload = build_candidate_payload(profile=profile, companies=companies, detailed=True)
        payload["languages"] = [
            language.model_dump(mode="json", by_alias=True) for language in profile.languages
        ]
        payload["languageCheck"] = {
            "passed": language_check.passed,
            "confidence": language_check.confidence,
            "reasoning": language_check.reasoning,
        }
        payload["initialEvaluation"] = {
            "score": initial.overall_score,
            "concerns": initial.concerns,
            "strengths": initial.strengths,
            "detailedAnalysis": initial.detailed_analysis.model_dump(mode="json", by_alias=True),
            "reviewReason": initial.review_reason,
        }

        try:
            result = request_structured(
                self._client,
                render_secondary_policy(config, initial),
                payload,
                SECONDARY_ADAPTER,
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.exception(
                "evaluation.secondary_failed",
                linkedin_url=profile.linkedin_url,
                error=str(exc),
            )
            return failed_secondary()

        self._logger.info(
            "evaluation.secondary_completed",
            linkedin_url=profile.linkedin_url,
            final_decision=result.final_decision,
            updated_score=result.updated_score,
        )
        return result


def merge_decisions(primary: ReviewDecision, secondary: Any) -> PassDecision | RejectDecision:
    """Fold the escalation outcome into the primary decision.

    Decision, score, confidence and reasoning come from the second pass;
    strengths, concerns and red flags from both passes are concatenated.
    """
    fields = primary.model_dump(exclude={"decision"})
    fields.update(
        reasoning=secondary.reasoning,
        overall_score=secondary.updated_score,
        confidence=secondary.confidence,
        strengths=[*primary.strengths, *secondary.strengths],
        concerns=[*primary.concerns, *secondary.concerns],
        red_flags=[*primary.red_flags, *secondary.red_flags],
        escalated=True,
    )
    if secondary.final_decision == "PASS":
        fields["short_reject_reason"] = None
        return PassDecision.model_validate(fields)

    fields.update(
        short_reject_reason=secondary.short_reject_reason,
        interview_recommendation="Not Recommended",
    )
    return RejectDecision.model_validate(fields)


__all__ = ["SecondaryEvaluator", "failed_secondary", "merge_decisions"]
