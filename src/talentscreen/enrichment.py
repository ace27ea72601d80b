"""Best-effort company enrichment through a web-search API."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable

import pendulum
import requests
import structlog

from .schemas import EnrichedCompany, LinkedInProfile

ENRICHMENT_FAILED = "Failed to fetch company information"


@dataclass(slots=True)
class SearchResponse:
    answer: str = ""
    results: list[dict[str, Any]] = field(default_factory=list)


@runtime_checkable
class SearchClient(Protocol):
    def search(self, query: str) -> SearchResponse:
        ...


class TavilySearchClient:
    """Minimal Tavily search API client."""

    ENDPOINT = "https://api.tavily.com/search"

    def __init__(
        self,
        *,
        api_key: str | None,
        search_depth: str = "basic",
        max_results: int = 5,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._search_depth = search_depth
        self._max_results = max_results
        self._timeout = timeout
        self._session = session or requests.Session()

    def search(self, query: str) -> SearchResponse:
        if not self._api_key:
            raise RuntimeError("TAVILY_API_KEY is not configured")
        response = self._session.post(
            self.ENDPOINT,
            json={
                "query": query,
                "search_depth": self._search_depth,
                "max_results": self._max_results,
                "include_answer": True,
            },
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        body = response.json()
        return SearchResponse(
            answer=body.get("answer") or "",
            results=list(body.get("results") or []),
        )


class CompanyEnricher:
    """Look up background for a candidate's most recent employers.

    Never raises: a failed lookup yields a placeholder description so that
    enrichment cannot abort candidate processing.
    """

    def __init__(
        self,
        search_client: SearchClient,
        *,
        max_companies: int = 3,
        max_workers: int = 3,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._search = search_client
        self._max_companies = max_companies
        self._max_workers = max_workers
        self._now_provider = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def enrich(self, name: str, website: str | None = None) -> EnrichedCompany:
        timestamp = self._now_provider().to_iso8601_string()
        query = f"{name} company information funding tech stack reputation {website or ''}".strip()
        try:
            response = self._search.search(query)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning("enrichment.failed", company=name, error=str(exc))
            return EnrichedCompany(
                name=name,
                description=ENRICHMENT_FAILED,
                website=website,
                search_timestamp=timestamp,
                enriched=False,
            )

        if not response.answer and not response.results:
            self._logger.info("enrichment.empty", company=name)
            return EnrichedCompany(
                name=name,
                description=ENRICHMENT_FAILED,
                website=website,
                search_timestamp=timestamp,
                enriched=False,
            )

        first_url = response.results[0].get("url") if response.results else None
        return EnrichedCompany(
            name=name,
            description=response.answer,
            website=website or first_url,
            search_timestamp=timestamp,
        )

    def companies_for(self, profile: LinkedInProfile) -> list[tuple[str, str | None]]:
        """Distinct employers in profile order (most recent first), capped."""
        seen: set[str] = set()
        companies: list[tuple[str, str | None]] = []
        for experience in profile.experiences:
            name = (experience.company_name or "").strip()
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            companies.append((name, experience.company_website))
            if len(companies) >= self._max_companies:
                break
        return companies

    def enrich_profile(self, profile: LinkedInProfile) -> list[EnrichedCompany]:
        companies = self.companies_for(profile)
        if not companies:
            return []
        workers = min(self._max_workers, len(companies))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda item: self.enrich(*item), companies))


__all__ = [
    "CompanyEnricher",
    "ENRICHMENT_FAILED",
    "SearchClient",
    "SearchResponse",
    "TavilySearchClient",
]
