"""Command line entry point: serve the API or run store maintenance."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import typer

from studio_sync.config import load_settings
from studio_sync.database.client import CosmosClient
from studio_sync.database.store import CosmosDocumentStore
from studio_sync.logging import configure_logging
from studio_sync.maintenance import (
    audit_relationships,
    backfill_derived_fields,
    repair_corrupted_references,
    summarize_findings,
)

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Reference consistency tooling.")

T = TypeVar("T")


async def _with_store(job: Callable[[DocumentStore], Awaitable[T]]) -> T:
    settings = load_settings()
    configure_logging(settings.app.log_level)
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    try:
        return await job(CosmosDocumentStore(cosmos.database, settings.cosmos.container))
    finally:
        await cosmos.close()


def _run(job: Callable[[DocumentStore], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_with_store(job))
    except ConnectionError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload/--no-reload"),
) -> None:
    """Run the action API with uvicorn."""
    import uvicorn  # noqa: PLC0415

    uvicorn.run("studio_sync.app:create_app", host=host, port=port, reload=reload, factory=True)


@app.command()
def audit(
    fail_on_findings: bool = typer.Option(
        False,
        "--fail-on-findings/--no-fail-on-findings",
        help="Exit with status 1 when any relationship is out of step.",
    ),
) -> None:
    """Report published documents whose reciprocal references are missing or orphaned."""
    findings = _run(audit_relationships)
    for line in summarize_findings(findings):
        typer.echo(line)
    typer.echo(f"{len(findings)} document(s) out of step")
    if findings and fail_on_findings:
        raise typer.Exit(code=1)


@app.command("repair-references")
def repair_references(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="List documents that would be rewritten without patching."
    ),
) -> None:
    """Rewrite reference arrays that hold plain ids instead of reference elements."""
    report = _run(lambda store: repair_corrupted_references(store, dry_run=dry_run))
    typer.echo(
        f"Scanned {report.scanned} revision(s); "
        f"{'would repair' if dry_run else 'repaired'} {len(report.repaired)}; "
        f"{len(report.failures)} failure(s)"
    )
    for failure in report.failures:
        typer.echo(f"  {failure.document_id}: {failure.error}", err=True)
    if report.failures:
        raise typer.Exit(code=1)


@app.command("backfill-derived")
def backfill_derived() -> None:
    """Recompute derived sort keys such as event.eventDateValue."""
    reports = _run(backfill_derived_fields)
    failed = 0
    for document_type, report in reports.items():
        typer.echo(
            f"{document_type}: updated={report.updated} unchanged={report.unchanged} "
            f"skipped={report.skipped} failed={report.failed}"
        )
        failed += report.failed
    if failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
