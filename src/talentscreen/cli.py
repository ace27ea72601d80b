"""Typer CLI entrypoint for the screening pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml

from .container import ScreeningContainer, create_container
from .corrections import apply_manual_override, backfill_countries, reconcile_session_counters
from .errors import OverrideError
from .logging import configure_logging
from .pipeline import ProfileLoadError, scrape_and_ingest
from .schemas import ScreeningConfig, SessionStatus

app = typer.Typer(help="LinkedIn candidate screening CLI.")


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _container(ctx: typer.Context, audit_log: Optional[Path] = None) -> ScreeningContainer:
    return create_container(settings=ctx.obj.get("settings"), audit_log=audit_log)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _screening_config(
    target_role: str,
    target_country: Optional[str],
    custom_criteria: Optional[str],
    minimum_years: float,
    enrichment: bool,
) -> ScreeningConfig:
    try:
        return ScreeningConfig(
            target_role=target_role,
            target_country=target_country,
            custom_criteria=custom_criteria,
            minimum_years_experience=minimum_years,
            enable_company_enrichment=enrichment,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Load settings and configure logging for every command."""
    settings: dict[str, Any] = {}
    if config:
        with config.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
            if not isinstance(loaded, dict):
                raise typer.BadParameter("Config file must be a YAML object", param_name="config")
            settings = loaded

    configure_logging(log_level)
    ctx.obj = {"settings": settings}


@app.command()
def ingest(
    ctx: typer.Context,
    profiles: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, help="Scraped profiles (JSON array or JSONL)."),
    created_by: str = typer.Option("user", help="Recorded as the session owner."),
    target_role: str = typer.Option("CTO", help="CTO, VP_Engineering, Engineering_Manager or Custom."),
    target_country: Optional[str] = typer.Option(None, help="Country whose native language is required."),
    custom_criteria: Optional[str] = typer.Option(None, help="Extra requirement passed to the evaluator."),
    minimum_years: float = typer.Option(7, help="Minimum years of hands-on engineering."),
    enrichment: bool = typer.Option(True, "--enrichment/--no-enrichment", help="Look up company background."),
) -> None:
    """Create a screening session from a scraped profiles file."""
    screening = _screening_config(target_role, target_country, custom_criteria, minimum_years, enrichment)
    container = _container(ctx)
    try:
        loaded = container.profile_loader().load(profiles)
    except ProfileLoadError as exc:
        for error in exc.errors:
            typer.echo(f"skipped {error}", err=True)
        loaded = exc.partial
    if not loaded:
        _fail("No valid profiles found.")

    report = container.ingestor().ingest(loaded, config=screening, created_by=created_by)
    typer.echo(f"Session {report.session_id}: {report.inserted} candidates queued ({report.skipped} duplicates skipped).")


@app.command()
def scrape(
    ctx: typer.Context,
    urls: Optional[List[str]] = typer.Argument(None, help="LinkedIn profile URLs."),
    urls_file: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="File with one URL per line."),
    created_by: str = typer.Option("user", help="Recorded as the session owner."),
    target_role: str = typer.Option("CTO", help="CTO, VP_Engineering, Engineering_Manager or Custom."),
    target_country: Optional[str] = typer.Option(None, help="Country whose native language is required."),
) -> None:
    """Scrape LinkedIn URLs and create a screening session from the results."""
    raw = list(urls or [])
    if urls_file:
        raw.extend(urls_file.read_text(encoding="utf-8").splitlines())
    if not raw:
        raise typer.BadParameter("Provide at least one URL or --urls-file")

    screening = _screening_config(target_role, target_country, None, 7, True)
    container = _container(ctx)
    report = scrape_and_ingest(
        raw,
        scraper=container.scraper(),
        ingestor=container.ingestor(),
        adapter=container.profile_adapter(),
        config=screening,
        created_by=created_by,
    )
    for url in report.invalid_urls:
        typer.echo(f"invalid {url}", err=True)
    for url in report.failed_urls:
        typer.echo(f"failed {url}", err=True)
    if report.session_id is None:
        _fail(report.error or "Scraping failed")
    typer.echo(f"Session {report.session_id}: {report.inserted} candidates queued.")


@app.command()
def run(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Screening session id."),
    max_batches: Optional[int] = typer.Option(None, min=1, help="Stop after this many batches."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Invoke the batch runner until the session completes."""
    runner = _container(ctx, audit_log=audit_log).batch_runner()
    batches = 0
    processed = 0
    try:
        while True:
            report = runner.run(session_id)
            batches += 1
            processed += report.processed
            if report.status == SessionStatus.COMPLETED.value:
                break
            if report.processed == 0:
                # Only leased candidates remain; stop rather than spin.
                typer.echo(f"{report.remaining} candidates are held by another runner.")
                break
            if max_batches is not None and batches >= max_batches:
                break
    except LookupError as exc:
        _fail(str(exc))
    typer.echo(f"Processed {processed} candidates in {batches} batches; status {report.status}, remaining {report.remaining}.")


@app.command()
def retry(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate record id."),
) -> None:
    """Reset a candidate and screen it again."""
    processor = _container(ctx).processor()
    try:
        result = processor.retry(candidate_id)
    except LookupError as exc:
        _fail(str(exc))
    if not result.success:
        _fail(f"Retry failed: {result.error}")
    typer.echo(f"Candidate {candidate_id}: {result.decision.value}")


@app.command()
def override(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate record id."),
    decision: str = typer.Argument(..., help="PASS or REJECT."),
    reason: str = typer.Option(..., help="Why the automated decision is being replaced."),
    overridden_by: str = typer.Option("admin", "--by", help="Operator name."),
) -> None:
    """Manually replace a candidate's decision."""
    store = _container(ctx).store()
    try:
        result = apply_manual_override(store, candidate_id, decision.upper(), reason, overridden_by=overridden_by)
    except (LookupError, OverrideError) as exc:
        _fail(str(exc))
    typer.echo(
        f"Candidate {candidate_id}: {result.original_decision.value} -> {result.new_decision.value}"
    )


@app.command()
def overrides(ctx: typer.Context) -> None:
    """List manually overridden candidates, most recently evaluated first."""
    records = _container(ctx).store().list_overrides()
    _echo_json(
        [
            {
                "id": record.id,
                "session_id": record.session_id,
                "full_name": record.full_name,
                "decision_result": record.decision_result.value,
                "override": record.manual_override,
            }
            for record in records
        ]
    )


@app.command()
def reconcile(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Screening session id."),
) -> None:
    """Recompute a session's counters from its candidates."""
    store = _container(ctx).store()
    try:
        report = reconcile_session_counters(store, session_id)
    except LookupError as exc:
        _fail(str(exc))
    _echo_json(
        {
            "session_id": session_id,
            "changed": report.changed,
            "before": report.before.model_dump(),
            "after": report.after.model_dump(),
        }
    )


@app.command("backfill-countries")
def backfill_countries_command(ctx: typer.Context) -> None:
    """Resolve countries for candidates ingested without one."""
    report = backfill_countries(_container(ctx).store())
    _echo_json({"updated": report.updated, "skipped": report.skipped, "countries": report.countries})


@app.command()
def status(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Screening session id."),
) -> None:
    """Show a session's status and counters."""
    store = _container(ctx).store()
    session = store.get_session(session_id)
    if session is None:
        _fail(f"Screening session not found: {session_id}")
    payload = session.model_dump(mode="json", exclude={"config"})
    payload["config"] = session.config.model_dump(mode="json", by_alias=True)
    payload["remaining"] = store.count_unfinished(session_id)
    payload["errors"] = len(store.list_session_errors(session_id))
    _echo_json(payload)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
