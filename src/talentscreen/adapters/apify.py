"""Profile scrape capability backed by an Apify actor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests
import structlog

from ..core.urls import extract_profile_id


@dataclass(slots=True)
class ScrapeResult:
    success: bool
    profiles: list[dict[str, Any]] = field(default_factory=list)
    failed_urls: list[str] = field(default_factory=list)
    error: str | None = None


class ApifyProfileScraper:
    """Run the LinkedIn profile actor synchronously and collect its dataset.

    Transport and actor failures are reported in the result, never raised.
    """

    ENDPOINT = "https://api.apify.com/v2/acts/{actor_id}/run-sync-get-dataset-items"

    def __init__(
        self,
        *,
        token: str | None,
        actor_id: str,
        timeout: float = 300.0,
        session: requests.Session | None = None,
    ) -> None:
        self._token = token
        self._actor_id = actor_id
        self._timeout = timeout
        self._session = session or requests.Session()
        self._logger = structlog.get_logger(__name__)

    def scrape(self, urls: list[str]) -> ScrapeResult:
        if not urls:
            return ScrapeResult(success=True)

        self._logger.info("scrape.started", count=len(urls), actor_id=self._actor_id)
        try:
            items = self._run(urls)
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            self._logger.error("scrape.failed", error=str(exc), count=len(urls))
            return ScrapeResult(success=False, failed_urls=list(urls), error=str(exc))

        profiles = [item for item in items if isinstance(item, dict)]
        returned = {
            extract_profile_id(str(profile.get("linkedinUrl") or ""))
            for profile in profiles
        }
        failed = [url for url in urls if extract_profile_id(url) not in returned]
        self._logger.info("scrape.completed", profiles=len(profiles), failed=len(failed))
        return ScrapeResult(success=True, profiles=profiles, failed_urls=failed)

    def _run(self, urls: list[str]) -> list[Any]:
        if not self._token:
            raise RuntimeError("APIFY_API_TOKEN is not configured")
        response = self._session.post(
            self.ENDPOINT.format(actor_id=self._actor_id),
            json={"profileUrls": urls},
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        items = response.json()
        if not isinstance(items, list):
            raise ValueError("Unexpected actor output: expected a list of dataset items")
        return items
