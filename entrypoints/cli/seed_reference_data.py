from __future__ import annotations

from typing import Optional

import typer

from solaros.adapters.config import config
from solaros.pipelines.seed import export_sample_data, seed_reference_data

app = typer.Typer(help="SolarOS reference data (utilities, permitting, incentives, financing).")


@app.command("seed")
def seed_cmd(
    db_uri: str = typer.Option(config.DB_URI, help="SQLAlchemy database URI"),
    from_dir: Optional[str] = typer.Option(
        None,
        "--from-dir",
        help="Directory of <table>.csv / <table>.parquet files; built-in samples if omitted",
    ),
) -> None:
    """
    Load reference data into the database.
    """
    counts = seed_reference_data(db_uri, source_dir=from_dir)
    typer.echo(f"Seeded {sum(counts.values())} rows across {len(counts)} tables")


@app.command("export-sample")
def export_sample_cmd(
    out_dir: str = typer.Option("data/reference", help="Where to write the CSVs"),
) -> None:
    """
    Write the built-in sample reference data as CSVs.
    """
    for path in export_sample_data(out_dir):
        typer.echo(path)


if __name__ == "__main__":
    app()
