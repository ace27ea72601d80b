"""Dependency injection container for the screening system."""

from __future__ import annotations

from pathlib import Path

from dependency_injector import containers, providers

from .adapters import ApifyProfileScraper, LinkedInProfileAdapter
from .core import LanguageCheckConfig, LanguageChecker, PrimaryEvaluator, SecondaryEvaluator
from .enrichment import CompanyEnricher, TavilySearchClient
from .llm import OpenAIChatClient
from .pipeline import AuditLogger, BatchRunner, CandidateProcessor, ProfileIngestor, ProfileLoader
from .schemas.config import load_config
from .storage import SqlScreeningStore


class ScreeningContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    store = providers.Singleton(
        SqlScreeningStore,
        url=config.database.url,
        echo=config.database.echo,
    )

    llm_client = providers.Singleton(
        OpenAIChatClient,
        api_key=config.llm.api_key,
        model=config.llm.model,
        base_url=config.llm.base_url,
        timeout=config.llm.timeout,
        app_url=config.llm.app_url,
        app_title=config.llm.app_title,
    )

    search_client = providers.Singleton(
        TavilySearchClient,
        api_key=config.search.api_key,
        search_depth=config.search.search_depth,
        max_results=config.search.max_results,
        timeout=config.search.timeout,
    )

    scraper = providers.Singleton(
        ApifyProfileScraper,
        token=config.scraper.token,
        actor_id=config.scraper.actor_id,
        timeout=config.scraper.timeout,
    )

    profile_adapter = providers.Singleton(LinkedInProfileAdapter)

    language_checker = providers.Singleton(
        LanguageChecker,
        config=providers.Factory(
            LanguageCheckConfig,
            assumed_english_penalty=config.language.assumed_english_penalty,
            inferred_english_penalty=config.language.inferred_english_penalty,
            inferred_native_penalty=config.language.inferred_native_penalty,
            min_profile_text_length=config.language.min_profile_text_length,
        ),
    )

    enricher = providers.Singleton(
        CompanyEnricher,
        search_client,
        max_companies=config.enrichment.max_companies,
        max_workers=config.enrichment.max_workers,
    )

    primary_evaluator = providers.Singleton(PrimaryEvaluator, client=llm_client)
    secondary_evaluator = providers.Singleton(SecondaryEvaluator, client=llm_client)

    audit_logger = providers.Object(None)

    processor = providers.Singleton(
        CandidateProcessor,
        store=store,
        language_checker=language_checker,
        enricher=enricher,
        primary=primary_evaluator,
        secondary=secondary_evaluator,
        lease_seconds=config.batch.lease_seconds,
        audit_logger=audit_logger,
    )

    batch_runner = providers.Factory(
        BatchRunner,
        store=store,
        processor=processor,
        page_size=config.batch.page_size,
        max_workers=config.batch.max_workers,
        lease_seconds=config.batch.lease_seconds,
    )

    profile_loader = providers.Factory(ProfileLoader, adapter=profile_adapter)
    ingestor = providers.Factory(ProfileIngestor, store=store, adapter=profile_adapter)


def create_container(
    *,
    settings: dict | None = None,
    audit_log: Path | None = None,
) -> ScreeningContainer:
    """Instantiate the container from validated settings (defaults when omitted)."""

    container = ScreeningContainer()
    container.config.from_dict(load_config(settings).to_settings())

    if audit_log is not None:
        container.audit_logger.override(providers.Object(AuditLogger(audit_log)))

    return container
