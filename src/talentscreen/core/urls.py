"""Validation and canonicalization of LinkedIn profile URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

PROFILE_MARKER = "linkedin.com/in/"
CANONICAL_TEMPLATE = "https://www.linkedin.com/in/{profile_id}"

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_HTTP_SCHEME = re.compile(r"^http://", re.IGNORECASE)
_PROFILE_ID = re.compile(r"linkedin\.com/in/([^/?#\s]+)", re.IGNORECASE)


@dataclass(slots=True)
class UrlValidationResult:
    valid: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)


def extract_profile_id(url: str) -> str | None:
    """Return the lower-cased profile identifier, or None if the URL has none."""
    candidate = url.strip()
    if not candidate:
        return None
    if not _SCHEME.match(candidate):
        candidate = "https://" + candidate
    candidate = _HTTP_SCHEME.sub("https://", candidate)

    if PROFILE_MARKER not in candidate.lower():
        return None
    match = _PROFILE_ID.search(candidate)
    if not match:
        return None
    return match.group(1).lower()


def normalize_profile_url(url: str) -> str | None:
    profile_id = extract_profile_id(url)
    if profile_id is None:
        return None
    return CANONICAL_TEMPLATE.format(profile_id=profile_id)


def validate_profile_urls(urls: Iterable[str]) -> UrlValidationResult:
    """Split raw input into canonical profile URLs and rejected originals.

    Blank entries are skipped. Duplicates (by profile identifier) keep the
    first occurrence.
    """
    result = UrlValidationResult()
    seen: set[str] = set()
    for raw in urls:
        url = raw.strip()
        if not url:
            continue
        profile_id = extract_profile_id(url)
        if profile_id is None:
            result.invalid.append(url)
            continue
        if profile_id in seen:
            continue
        seen.add(profile_id)
        result.valid.append(CANONICAL_TEMPLATE.format(profile_id=profile_id))
    return result


__all__ = [
    "UrlValidationResult",
    "extract_profile_id",
    "normalize_profile_url",
    "validate_profile_urls",
]
