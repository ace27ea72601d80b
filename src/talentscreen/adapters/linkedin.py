"""LinkedIn profile adapter for scraper output."""

from __future__ import annotations

import json
from typing import Any

from ..core.country import extract_country_from_profile
from ..schemas import LinkedInProfile, NewCandidate


def sanitize_payload(value: Any) -> Any:
    """Recursively drop NUL characters, which relational stores reject."""
    if isinstance(value, str):
        return value.replace("\x00", "")
    if isinstance(value, list):
        return [sanitize_payload(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_payload(item) for key, item in value.items()}
    return value


class LinkedInProfileAdapter:
    """Adapter converting scraped LinkedIn JSON into candidate rows."""

    provider = "linkedin"

    def parse_profile(self, payload: dict[str, Any] | str | bytes) -> LinkedInProfile:
        data = self._load(payload)
        return LinkedInProfile.model_validate(sanitize_payload(data))

    def to_new_candidate(self, profile: LinkedInProfile) -> NewCandidate:
        return NewCandidate(
            candidate_id=profile.linkedin_url,
            linkedin_url=profile.linkedin_url,
            full_name=profile.display_name,
            current_title=profile.job_title or "",
            current_company=profile.company_name or "",
            location=profile.address_country_only or profile.address_with_country or "",
            country=extract_country_from_profile(profile),
            profile_data=profile.to_payload(),
        )

    @staticmethod
    def _load(blob: dict[str, Any] | str | bytes) -> dict[str, Any]:
        if isinstance(blob, dict):
            return blob
        if isinstance(blob, bytes):
            blob = blob.decode("utf-8")
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid LinkedIn profile payload") from exc
        if not isinstance(data, dict):
            raise ValueError("LinkedIn profile payload must be a JSON object")
        return data
