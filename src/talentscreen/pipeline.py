"""Candidate processing, batch execution and profile ingestion."""

from __future__ import annotations

import json
import time
import traceback
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

import pendulum
import structlog

from . import __version__
from .adapters import ProfileAdapter, ProfileScraper
from .core import LanguageChecker, PrimaryEvaluator, SecondaryEvaluator, merge_decisions
from .core.country import extract_country_from_profile
from .core.urls import validate_profile_urls
from .enrichment import CompanyEnricher
from .errors import CandidateNotFoundError, SessionNotFoundError
from .schemas import (
    DecisionResult,
    EvaluationUpdate,
    LinkedInProfile,
    ScreeningConfig,
    SessionStatus,
)
from .storage import ScreeningStore

CLAIM_LOST = "Candidate is already claimed or finished"


def _utcnow() -> pendulum.DateTime:
    return pendulum.now("UTC")


@dataclass(slots=True)
class ProcessingResult:
    success: bool
    candidate_id: str
    decision: DecisionResult | None = None
    error: str | None = None

    @property
    def claim_lost(self) -> bool:
        return self.error == CLAIM_LOST


@dataclass(slots=True)
class BatchReport:
    """Outcome of one batch; ``processed`` excludes candidates whose claim was lost."""

    status: str
    processed: int
    remaining: int
    claims_lost: int = 0
    results: list[ProcessingResult] = field(default_factory=list)


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=str))
            handle.write("\n")


class CandidateProcessor:
    """Run one candidate through language check, enrichment and evaluation.

    The candidate is claimed (PENDING -> IN_PROGRESS) before any work starts,
    and both the final write and the error marking only apply while that claim
    is still held. Each of those writes commits together with its session
    counter update. Not-found errors propagate; every other failure is recorded
    against the session and the candidate is marked ERRORED.
    """

    def __init__(
        self,
        *,
        store: ScreeningStore,
        language_checker: LanguageChecker,
        enricher: CompanyEnricher,
        primary: PrimaryEvaluator,
        secondary: SecondaryEvaluator,
        lease_seconds: int = 600,
        audit_logger: AuditLogger | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._language = language_checker
        self._enricher = enricher
        self._primary = primary
        self._secondary = secondary
        self._lease_seconds = lease_seconds
        self._audit = audit_logger
        self._now_provider = now_provider or _utcnow
        self._logger = structlog.get_logger(__name__)

    def process(self, candidate_id: str, session_id: str) -> ProcessingResult:
        candidate = self._store.get_candidate(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        log = self._logger.bind(candidate_id=candidate_id, session_id=session_id)
        now = self._now_provider()
        token = str(uuid.uuid4())
        claimed = self._store.claim_candidate(
            candidate_id,
            token=token,
            now=now,
            stale_before=now.subtract(seconds=self._lease_seconds),
        )
        if not claimed:
            log.warning("candidate.claim_lost", state=candidate.decision_result.value)
            return ProcessingResult(success=False, candidate_id=candidate_id, error=CLAIM_LOST)

        started = time.perf_counter()
        try:
            config = session.config
            profile = candidate.profile
            target_country = (
                config.target_country
                or candidate.country
                or extract_country_from_profile(profile)
            )

            language_check = self._language.check(profile, target_country)
            companies = (
                self._enricher.enrich_profile(profile) if config.enable_company_enrichment else []
            )

            primary = self._primary.evaluate(
                profile=profile,
                language_check=language_check,
                companies=companies,
                config=config,
            )
            secondary = None
            final = primary
            if primary.decision == "REVIEW":
                secondary = self._secondary.evaluate(
                    profile=profile,
                    language_check=language_check,
                    companies=companies,
                    initial=primary,
                    config=config,
                )
                final = merge_decisions(primary, secondary)

            result = DecisionResult.PASS if final.decision == "PASS" else DecisionResult.REJECT
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            evaluation = EvaluationUpdate(
                language_check=language_check,
                enriched_companies=companies,
                final_decision=final,
                secondary_evaluation=secondary,
                decision_result=result,
                overall_score=final.overall_score,
                processing_time_ms=elapsed_ms,
                evaluated_at=self._now_provider(),
            )

            if not self._store.complete_candidate(
                candidate_id, token=token, session_id=session_id, evaluation=evaluation
            ):
                log.warning("candidate.claim_lost", stage="save")
                return ProcessingResult(success=False, candidate_id=candidate_id, error=CLAIM_LOST)
        except Exception as exc:  # noqa: BLE001
            log.exception("candidate.failed", error=str(exc))
            self._record_failure(candidate_id, session_id, token, exc)
            return ProcessingResult(success=False, candidate_id=candidate_id, error=str(exc))

        log.info(
            "candidate.processed",
            decision=result.value,
            overall_score=final.overall_score,
            escalated=secondary is not None,
            processing_time_ms=elapsed_ms,
        )
        if self._audit:
            self._audit.append(
                {
                    "candidate_id": candidate_id,
                    "session_id": session_id,
                    "linkedin_url": candidate.linkedin_url,
                    "decision": result.value,
                    "overall_score": final.overall_score,
                    "escalated": secondary is not None,
                    "language_confidence": language_check.confidence,
                    "processing_time_ms": elapsed_ms,
                    "timestamp": evaluation.evaluated_at.isoformat(),
                    "app_version": __version__,
                }
            )
        return ProcessingResult(success=True, candidate_id=candidate_id, decision=result)

    def _record_failure(self, candidate_id: str, session_id: str, token: str, exc: Exception) -> None:
        # If this write fails too the candidate stays IN_PROGRESS until its lease expires.
        try:
            marked = self._store.fail_candidate(
                candidate_id,
                token=token,
                session_id=session_id,
                message=str(exc),
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
        except Exception as record_exc:  # noqa: BLE001
            self._logger.exception(
                "candidate.failure_not_recorded",
                candidate_id=candidate_id,
                session_id=session_id,
                error=str(record_exc),
            )
            return
        if not marked:
            self._logger.warning(
                "candidate.claim_lost", candidate_id=candidate_id, session_id=session_id, stage="error"
            )

    def retry(self, candidate_id: str) -> ProcessingResult:
        """Reset a candidate to PENDING, release its counter bucket and process it again."""
        candidate = self._store.get_candidate(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)

        prior = self._store.reset_candidate(candidate_id)
        if prior is None:
            raise CandidateNotFoundError(candidate_id)
        self._logger.info(
            "candidate.reset",
            candidate_id=candidate_id,
            session_id=candidate.session_id,
            prior=prior.value,
        )
        return self.process(candidate_id, candidate.session_id)


class BatchRunner:
    """Process one page of claimable candidates per invocation.

    With ``max_workers == 1`` candidates run strictly one after another; a
    larger pool bounds how many candidates are in flight at once.
    """

    def __init__(
        self,
        *,
        store: ScreeningStore,
        processor: CandidateProcessor,
        page_size: int = 2,
        max_workers: int = 1,
        lease_seconds: int = 600,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._processor = processor
        self._page_size = page_size
        self._max_workers = max_workers
        self._lease_seconds = lease_seconds
        self._now_provider = now_provider or _utcnow
        self._logger = structlog.get_logger(__name__)

    def run(self, session_id: str) -> BatchReport:
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        now = self._now_provider()
        if session.status is SessionStatus.PENDING:
            self._store.set_session_status(session_id, SessionStatus.PROCESSING, started_at=now)
            self._logger.info("batch.session_started", session_id=session_id)

        page = self._store.list_claimable_candidates(
            session_id,
            limit=self._page_size,
            stale_before=now.subtract(seconds=self._lease_seconds),
        )
        if not page:
            # Re-check: candidates claimed by a concurrent runner are still unfinished.
            remaining = self._store.count_unfinished(session_id)
            if remaining:
                return BatchReport(status=SessionStatus.PROCESSING.value, processed=0, remaining=remaining)
            if session.status is not SessionStatus.COMPLETED:
                self._store.set_session_status(
                    session_id, SessionStatus.COMPLETED, completed_at=self._now_provider()
                )
                self._logger.info("batch.completed", session_id=session_id)
            return BatchReport(status=SessionStatus.COMPLETED.value, processed=0, remaining=0)

        ids = [candidate.id for candidate in page]
        if self._max_workers <= 1 or len(ids) == 1:
            results = [self._processor.process(candidate_id, session_id) for candidate_id in ids]
        else:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(ids))) as pool:
                results = list(pool.map(lambda candidate_id: self._processor.process(candidate_id, session_id), ids))

        remaining = self._store.count_unfinished(session_id)
        claims_lost = sum(1 for result in results if result.claim_lost)
        self._logger.info(
            "batch.processed",
            session_id=session_id,
            processed=len(results) - claims_lost,
            succeeded=sum(1 for result in results if result.success),
            claims_lost=claims_lost,
            remaining=remaining,
        )
        return BatchReport(
            status=SessionStatus.PROCESSING.value,
            processed=len(results) - claims_lost,
            remaining=remaining,
            claims_lost=claims_lost,
            results=results,
        )


class ProfileLoadError(ValueError):
    """Raised when profile loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[LinkedInProfile]):
        super().__init__("Profile loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Profile loading failed: {self.errors}"


class ProfileLoader:
    """Load scraped profiles from a JSON array or JSON-lines file."""

    def __init__(self, adapter: ProfileAdapter):
        self._adapter = adapter

    def load(self, path: Path) -> list[LinkedInProfile]:
        text = path.read_text(encoding="utf-8")
        records: list[tuple[str, Any]] = []
        errors: list[str] = []

        if text.lstrip().startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ProfileLoadError([f"invalid JSON ({exc})"], []) from exc
            records = [(f"record {idx}", item) for idx, item in enumerate(items, start=1)]
        else:
            for idx, line in enumerate(text.splitlines(), start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    records.append((f"line {idx}", json.loads(raw)))
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")

        profiles: list[LinkedInProfile] = []
        for label, item in records:
            if not isinstance(item, dict):
                errors.append(f"{label}: expected a JSON object")
                continue
            try:
                profiles.append(self._adapter.parse_profile(item))
            except Exception as exc:  # noqa: BLE001
                errors.append(f"{label}: {exc}")
        if errors:
            raise ProfileLoadError(errors, profiles)
        return profiles


@dataclass(slots=True)
class IngestReport:
    session_id: str
    inserted: int
    skipped: int


class ProfileIngestor:
    """Create a screening session and its PENDING candidates."""

    def __init__(self, *, store: ScreeningStore, adapter: ProfileAdapter):
        self._store = store
        self._adapter = adapter
        self._logger = structlog.get_logger(__name__)

    def ingest(
        self,
        profiles: Iterable[LinkedInProfile | dict[str, Any]],
        *,
        config: ScreeningConfig | None = None,
        created_by: str = "user",
    ) -> IngestReport:
        candidates = [
            self._adapter.to_new_candidate(
                profile if isinstance(profile, LinkedInProfile) else self._adapter.parse_profile(profile)
            )
            for profile in profiles
        ]
        session = self._store.create_session(config or ScreeningConfig(), created_by=created_by)
        inserted = self._store.create_candidates(session.id, candidates)
        self._store.adjust_session_counters(session.id, total_candidates=inserted)
        self._logger.info(
            "ingest.completed",
            session_id=session.id,
            inserted=inserted,
            skipped=len(candidates) - inserted,
        )
        return IngestReport(session_id=session.id, inserted=inserted, skipped=len(candidates) - inserted)


@dataclass(slots=True)
class ScrapeIngestReport:
    session_id: str | None = None
    inserted: int = 0
    invalid_urls: list[str] = field(default_factory=list)
    failed_urls: list[str] = field(default_factory=list)
    error: str | None = None


def scrape_and_ingest(
    urls: Iterable[str],
    *,
    scraper: ProfileScraper,
    ingestor: ProfileIngestor,
    adapter: ProfileAdapter,
    config: ScreeningConfig | None = None,
    created_by: str = "user",
) -> ScrapeIngestReport:
    """Normalize URLs, scrape the valid ones and ingest what came back."""
    logger = structlog.get_logger(__name__)
    validation = validate_profile_urls(urls)
    report = ScrapeIngestReport(invalid_urls=list(validation.invalid))
    if not validation.valid:
        report.error = "No valid LinkedIn URLs provided"
        return report

    scraped = scraper.scrape(validation.valid)
    report.failed_urls = list(scraped.failed_urls)
    if not scraped.success:
        report.error = scraped.error or "Scraping failed"
        return report

    profiles: list[LinkedInProfile] = []
    for payload in scraped.profiles:
        try:
            profiles.append(adapter.parse_profile(payload))
        except Exception as exc:  # noqa: BLE001
            logger.warning("scrape.invalid_profile", error=str(exc))
            url = payload.get("linkedinUrl")
            if url:
                report.failed_urls.append(str(url))
    if not profiles:
        report.error = "No profiles were scraped successfully"
        return report

    ingested = ingestor.ingest(profiles, config=config, created_by=created_by)
    report.session_id = ingested.session_id
    report.inserted = ingested.inserted
    return report


__all__ = [
    "AuditLogger",
    "BatchReport",
    "BatchRunner",
    "CandidateProcessor",
    "IngestReport",
    "ProcessingResult",
    "ProfileIngestor",
    "ProfileLoadError",
    "ProfileLoader",
    "ScrapeIngestReport",
    "scrape_and_ingest",
]
