from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional

import typer

from querylab.config import get_settings
from querylab.exceptions import FixtureError, ScenarioNotFoundError
from querylab.infrastructure.fixtures import load, resolve_fixture_path
from querylab.infrastructure.sqlite_factory import ensure_seeded, sqlite_connection
from querylab.orchestrator import available_scenarios, resolve_scenario, run_scenarios
from querylab.reporter import describe_counts, print_results, print_summary
from querylab.utils.logging import configure_logging

app = typer.Typer(help="querylab: relational query practice over an in-memory dataset.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_logs=settings.log_json,
        engine_level=settings.log_engine_level,
    )


def _load_store(fixture: Optional[Path]):
    try:
        return load(fixture)
    except FixtureError as exc:
        typer.echo(f"Fixture error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def info(
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Fixture JSON file (default from settings)."),
) -> None:
    """
    Show effective configuration values and dataset counts.
    """
    settings = get_settings()
    _setup_logging()
    store = _load_store(fixture)
    typer.echo(
        f"env={settings.app_env} | fixture={resolve_fixture_path(fixture)} | "
        f"sqlite={settings.sqlite_path} | log_level={settings.log_level}"
    )
    typer.echo(describe_counts(store.counts()))


@app.command("list")
def list_scenarios(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also print each scenario's description."),
) -> None:
    """
    List registered scenarios (in-memory first, then raw SQL).
    """
    for name in available_scenarios():
        scenario = resolve_scenario(name)
        typer.echo(f"{name:<32} {scenario.title}")
        if verbose:
            typer.echo(f"{'':<32} {scenario.description}")


@app.command()
def run(
    scenario: List[str] = typer.Option(
        ["all"],
        "--scenario",
        "--scenarios",
        "-s",
        help="Scenario to run (repeatable; e.g. scenario14, employee_managers, sql, all).",
    ),
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Fixture JSON file (default from settings)."),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON instead of tables."),
    summary: bool = typer.Option(False, "--summary", help="Also print a profile summary table."),
) -> None:
    """
    Run one or more scenarios via the orchestrator and print their rows.
    """
    _setup_logging()
    store = _load_store(fixture)
    try:
        results = run_scenarios(scenario_names=scenario, store=store)
    except ScenarioNotFoundError as exc:
        typer.echo(str(exc.args[0]), err=True)
        raise typer.Exit(code=2) from exc

    if as_json:
        typer.echo(json.dumps(results, indent=2, default=str))
    else:
        print_results(results)
        if summary:
            print_summary(results)

    if any(res.get("error") for res in results):
        raise typer.Exit(code=1)


@app.command()
def sql(
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Fixture JSON file used to seed SQLite."),
) -> None:
    """
    Run every raw SQL scenario against the configured SQLite file.
    """
    _setup_logging()
    store = _load_store(fixture)
    results = run_scenarios(scenario_names=["sql"], store=store)
    print_results(results)
    if any(res.get("error") for res in results):
        raise typer.Exit(code=1)


@app.command("seed-sqlite")
def seed_sqlite(
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Fixture JSON file to copy into SQLite."),
    database: Optional[Path] = typer.Option(None, "--database", "-d", help="SQLite file (default from settings)."),
) -> None:
    """
    Create the SQLite schema and seed it from the fixture (once).
    """
    _setup_logging()
    store = _load_store(fixture)
    target = database or get_settings().sqlite_path
    with sqlite_connection(target) as conn:
        inserted = ensure_seeded(conn, store)
    if inserted:
        typer.echo(f"Seeded {target} with {inserted} rows.")
    else:
        typer.echo(f"{target} already seeded; nothing inserted.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
