"""Source-specific profile adapters and scrape clients."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..schemas import LinkedInProfile, NewCandidate
from .apify import ApifyProfileScraper, ScrapeResult
from .linkedin import LinkedInProfileAdapter, sanitize_payload


@runtime_checkable
class ProfileAdapter(Protocol):
    """Source-specific profile adapter contract.

    Implementations turn a raw scraped document into a validated profile and
    the denormalized candidate row stored at ingestion time.
    """

    provider: str

    def parse_profile(self, payload: dict[str, Any]) -> LinkedInProfile:
        """Validate a raw payload; unknown fields are preserved."""

    def to_new_candidate(self, profile: LinkedInProfile) -> NewCandidate:
        """Derive the listing fields for a validated profile."""


@runtime_checkable
class ProfileScraper(Protocol):
    def scrape(self, urls: list[str]) -> ScrapeResult:
        """Fetch raw profile documents for the given canonical URLs."""


__all__ = [
    "ApifyProfileScraper",
    "LinkedInProfileAdapter",
    "ProfileAdapter",
    "ProfileScraper",
    "ScrapeResult",
    "sanitize_payload",
]
