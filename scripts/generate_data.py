"""
Fixture generation script for querylab.

Writes a deterministic pseudo-random dataset as a PascalCase JSON fixture that
`querylab.infrastructure.fixtures.load` accepts, and optionally seeds the
SQLite file used by the raw SQL scenarios from it.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path

import typer

from querylab.infrastructure.fixtures import build_store
from querylab.infrastructure.generator import generate_dataset, write_dataset
from querylab.infrastructure.sqlite_factory import ensure_seeded, sqlite_connection

app = typer.Typer(help="Generate a synthetic fixture file (and optionally seed SQLite).")


@app.command()
def main(
    output: Path = typer.Option(
        Path("data/generated.json"),
        "--output",
        "-o",
        help="Fixture JSON output path.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    employees: int = typer.Option(30, "--employees", help="Number of employees."),
    products: int = typer.Option(20, "--products", help="Number of products."),
    customers: int = typer.Option(10, "--customers", help="Number of customers."),
    orders: int = typer.Option(40, "--orders", help="Number of orders."),
    sqlite: Path | None = typer.Option(
        None,
        "--sqlite",
        help="Optional SQLite file to seed with the generated data.",
    ),
) -> None:
    """
    Generate a synthetic dataset and write it as a fixture file.
    """
    start = time.perf_counter()
    dataset = generate_dataset(
        seed=seed,
        employees=employees,
        products=products,
        customers=customers,
        orders=orders,
    )
    write_dataset(dataset, output)
    typer.echo(
        f"Wrote {output} (seed={seed}, employees={employees}, products={products}, "
        f"customers={customers}, orders={orders}) in {time.perf_counter() - start:.2f}s"
    )

    if sqlite is None:
        return

    store = build_store(dataset)
    with sqlite_connection(sqlite) as conn:
        inserted = ensure_seeded(conn, store)
    typer.echo(f"Seeded {sqlite} with {inserted} rows.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
