"""Core screening components: normalization, language checks and evaluators."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .country import (
    detect_country,
    extract_country,
    extract_country_from_profile,
    normalize_country_name,
    residence_country,
)
from .evaluators import (
    PrimaryEvaluator,
    SecondaryEvaluator,
    failed_decision,
    failed_secondary,
    merge_decisions,
)
from .language import LanguageCheckConfig, LanguageChecker
from .urls import (
    UrlValidationResult,
    extract_profile_id,
    normalize_profile_url,
    validate_profile_urls,
)

__all__ = [
    "LanguageCheckConfig",
    "LanguageChecker",
    "PrimaryEvaluator",
    "SecondaryEvaluator",
    "UrlValidationResult",
    "detect_country",
    "extract_country",
    "extract_country_from_profile",
    "extract_profile_id",
    "failed_decision",
    "failed_secondary",
    "merge_decisions",
    "normalize_country_name",
    "normalize_profile_url",
    "residence_country",
    "validate_profile_urls",
]
