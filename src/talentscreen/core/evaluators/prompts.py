"""Evaluation policies sent to the LLM judge."""

from __future__ import annotations

from ...schemas import ReviewDecision, ScreeningConfig

ROLE_TITLES: dict[str, str] = {
    "CTO": "Local CTO",
    "VP_Engineering": "VP of Engineering",
    "Engineering_Manager": "Engineering Manager",
    "Custom": "technical leadership role",
}

PRIMARY_POLICY = """
You are an expert evaluator screening candidates for a {role_title} position{country_clause}.

The role is hands-on: the hire must still build (architecture, prototypes, code)
while leading customers and a growing team. Reject "executive drift" profiles.

MUST-HAVE REQUIREMENTS
1. {minimum_years:g}+ years of hands-on engineering (backend, systems or full-stack depth).
2. High EQ and presence: speaking, team building, customer-facing work.
3. Currently or recently hands-on, up to date with modern and AI tooling.
4. Strong English (professional working proficiency, may be inferred).
5. A growth trajectory: IC -> Senior -> Lead -> Director/VP/CTO.
{extra_requirements}
HOLISTIC CHECKS (concerns, not automatic rejects)
- Overqualification: will they roll up their sleeves?
- Innovation currency: modern skills or actively upskilling?
- Company quality: did they BUILD things or only MANAGE things?
- Language check: the languageCheck block is advisory. Weigh its confidence and
  notes; never reject on language data alone.

DECISION TIERS
- PASS (75-100): clear fit, proceed to interview.
- REVIEW (50-74): borderline or mixed signals; a deeper second pass will follow.
- REJECT (0-49): clear misfit.
"""

PRIMARY_OUTPUT_FORMAT = """
OUTPUT FORMAT
Return a single JSON object:
{
  "decision": "PASS" | "REVIEW" | "REJECT",
  "reasoning": "2-3 sentence holistic summary",
  "overallScore": 0-100,
  "confidence": 0-100,
  "strengths": ["..."],
  "concerns": ["..."],
  "interviewRecommendation": "Highly Recommended" | "Recommended" | "Consider" | "Not Recommended",
  "detailedAnalysis": {
    "technicalDepth": 0-100, "leadershipCapability": 0-100, "customerFacing": 0-100,
    "culturalFit": 0-100, "handsOnCurrent": 0-100, "builderDNA": 0-100,
    "startupFit": 0-100, "innovationCurrency": 0-100
  },
  "redFlags": ["..."],
  "suggestedInterviewQuestions": ["..."],
  "similarToKnownProfiles": true | false,
  "reviewReason": "why a second pass is needed (REQUIRED when decision is REVIEW)",
  "shortRejectReason": "5-10 word summary (REQUIRED when decision is REJECT)"
}
"""

SECONDARY_POLICY = """
You are performing a SECONDARY EVALUATION of a borderline candidate for a
{role_title} position. The first pass returned REVIEW because:
{review_reason}

Initial score: {initial_score:g}
Initial concerns: {initial_concerns}
Initial strengths: {initial_strengths}

Investigate:
1. Builder vs manager language: count action verbs (built, developed, architected)
   against management verbs (managed, oversaw, defined strategy) in experience descriptions.
2. Career trajectory: upward or flat, promotions or lateral moves, big corp to startup or back.
3. Company quality and stage: early-stage teams or only mature organisations.
4. Overqualification: very senior profiles must show recent hands-on or new ventures.
5. Skill currency: when was the last hands-on technical work, modern or legacy stack.

You must resolve the ambiguity: choose PASS or REJECT. REVIEW is not allowed.
If still uncertain after this analysis, choose REJECT.
"""

SECONDARY_OUTPUT_FORMAT = """
OUTPUT FORMAT
Return a single JSON object:
{
  "finalDecision": "PASS" | "REJECT",
  "reasoning": "2-3 sentences on why the deeper analysis led here",
  "keyFindings": ["..."],
  "builderDNAEvidence": "...",
  "innovationCurrencyAssessment": "...",
  "overqualificationAssessment": "...",
  "patternMatch": "...",
  "updatedScore": 0-100,
  "confidence": 0-100,
  "strengths": ["..."],
  "concerns": ["..."],
  "redFlags": ["..."],
  "shortRejectReason": "5-10 word summary (REQUIRED when finalDecision is REJECT)"
}
"""


def render_primary_policy(config: ScreeningConfig) -> str:
    extra: list[str] = []
    if config.require_vp_or_above:
        extra.append("- VP level or above held at least once.")
    if config.require_startup_experience:
        extra.append("- Prior startup experience.")
    if config.custom_criteria:
        extra.append(f"- {config.custom_criteria}")
    header = PRIMARY_POLICY.format(
        role_title=ROLE_TITLES[config.target_role],
        country_clause=f" in {config.target_country}" if config.target_country else "",
        minimum_years=config.minimum_years_experience,
        extra_requirements=("ADDITIONAL REQUIREMENTS\n" + "\n".join(extra) + "\n") if extra else "",
    )
    return header + PRIMARY_OUTPUT_FORMAT


def render_secondary_policy(config: ScreeningConfig, initial: ReviewDecision) -> str:
    header = SECONDARY_POLICY.format(
        role_title=ROLE_TITLES[config.target_role],
        review_reason=initial.review_reason,
        initial_score=initial.overall_score,
        initial_concerns=", ".join(initial.concerns) or "None specified",
        initial_strengths=", ".join(initial.strengths) or "None specified",
    )
    return header + SECONDARY_OUTPUT_FORMAT
