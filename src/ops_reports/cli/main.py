import asyncio
import datetime
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from tortoise import Tortoise
from tortoise.exceptions import BaseORMException

from ..core import logging_config  # noqa: F401
from ..core.config import TORTOISE_ORM_CONFIG
from ..features.documents.service import COLLECTIONS, CUSTOMERS, ORDERS, VENDORS, count_collection, upsert_documents
from ..features.reports.schemas import AdvancedReport
from ..features.reports.service import ReportSourceUnavailable, build_advanced_report, generate_advanced_report

logger = logging.getLogger(__name__)

app = typer.Typer(name="ops-reports", help="CLI for the operations reporting engine.")


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True)  # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


def _read_snapshot(path: Path) -> dict[str, list[dict[str, Any]]]:
    """
    Loads a JSON export shaped like {"orders": [...], "vendors": [...], "customers": [...]}.

    Missing collections are treated as empty. Exits with code 1 when the file
    is unreadable or not shaped like an export.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        typer.secho(f"Error: Could not read snapshot '{path}': {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        typer.secho(f"Error: Snapshot '{path}' is not valid JSON: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if not isinstance(raw, dict):
        typer.secho(f"Error: Snapshot '{path}' must be a JSON object keyed by collection.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    snapshot = {}
    for collection in COLLECTIONS:
        records = raw.get(collection, [])
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            typer.secho(f"Error: '{collection}' in snapshot '{path}' must be a list of objects.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        snapshot[collection] = records
    return snapshot


def _emit_report(report: AdvancedReport, output: Optional[Path]):
    body = report.model_dump_json(by_alias=True, indent=2)
    if output is None:
        typer.echo(body)
        return
    output.write_text(body + "\n", encoding="utf-8")
    typer.secho(f"Report written to {output}", fg=typer.colors.GREEN)


@app.command("advanced-report")
def advanced_report_command(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report JSON to this file."),
    snapshot: Optional[Path] = typer.Option(
        None, "--snapshot", help="Compute from a JSON export instead of the database."
    ),
):
    """Builds the advanced operations report and prints it as JSON."""
    if snapshot is not None:
        data = _read_snapshot(snapshot)
        report = build_advanced_report(
            data[ORDERS], data[VENDORS], data[CUSTOMERS],
            today=datetime.datetime.now(datetime.timezone.utc).date(),
        )
    else:
        report = asyncio.run(_advanced_report())
    _emit_report(report, output)


async def _advanced_report() -> AdvancedReport:
    """Async implementation for building the report from the database."""
    async with DBConnection():
        try:
            return await generate_advanced_report()
        except ReportSourceUnavailable as e:
            typer.secho(f"Error: Failed to fetch reports data. Details: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)


@app.command("load-snapshot")
def load_snapshot_command(
    path: Path = typer.Argument(..., help="JSON export with orders, vendors and customers."),
):
    """Imports a JSON export into the document store, replacing documents with the same id."""
    data = _read_snapshot(path)
    asyncio.run(_load_snapshot(data))


async def _load_snapshot(data: dict[str, list[dict[str, Any]]]):
    """Async implementation for importing a snapshot."""
    async with DBConnection():
        try:
            for collection in COLLECTIONS:
                written = await upsert_documents(collection, data[collection])
                typer.echo(f"{collection}: {written} document(s) imported.")
        except BaseORMException as e:
            typer.secho(f"Error importing snapshot: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
    typer.secho("Snapshot imported successfully.", fg=typer.colors.GREEN)


@app.command("test-db-connection")
def test_db_connection_command_sync():
    """Tests the database connection and counts the documents in each collection."""
    asyncio.run(test_db_connection_command())


async def test_db_connection_command():
    async with DBConnection():
        typer.echo("Successfully connected to the database.")
        try:
            for collection in COLLECTIONS:
                count = await count_collection(collection)
                typer.echo(f"Found {count} document(s) in '{collection}'.")
        except BaseORMException as e:
            typer.echo(f"Error querying documents: {e}", err=True)
            raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
