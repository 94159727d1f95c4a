"""Main CLI application using Typer."""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from segflow.core.exceptions import SegflowError

app = typer.Typer(help="Segflow: tract-level ICE segregation indices")


@app.command()
def fetch(
    output: str = typer.Option(..., help="Output path for the raw counts CSV"),
    config: str | None = typer.Option(None, help="Path to run config YAML (uses its acs section)"),
    year: int = typer.Option(2019, help="ACS vintage year"),
    state: str = typer.Option("36", help="State FIPS code"),
    county: Annotated[
        list[str] | None, typer.Option(help="County FIPS code (repeatable)")
    ] = None,
) -> None:
    """
    Fetch raw ACS counts for every tract of the given counties.

    Example:
        segflow fetch --year 2019 --state 36 --county 005 --county 047 --output raw.csv
    """
    from segflow.core.output import write_raw_counts_csv
    from segflow.core.schema import AcsConfig, load_run_config
    from segflow.datasets.acs.client import AcsClient

    try:
        if config is not None:
            acs = load_run_config(config).acs
        elif county:
            acs = AcsConfig(year=year, state=state, counties=county)
        else:
            acs = AcsConfig(year=year, state=state)

        client = AcsClient.from_config(acs)
        raw = client.fetch_tracts(acs.state, acs.counties)
        path = write_raw_counts_csv(raw, output)
    except (SegflowError, ValidationError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"Wrote raw counts to {path}")


@app.command()
def compute(
    input: str = typer.Option(..., help="Raw counts CSV"),
    output: str = typer.Option(..., help="Output path for the indices CSV"),
    flag_anomalies: bool = typer.Option(False, help="Append a range_anomaly column"),
    metadata: bool = typer.Option(True, help="Write a JSON metadata sidecar"),
) -> None:
    """Compute ICE indices from a raw counts CSV."""
    import polars as pl

    from segflow.core.indices import compute_index_frame
    from segflow.core.output import CsvOutputAdapter
    from segflow.core.validation import validate_tract_indices
    from segflow.datasets.acs.mapping import load_raw_counts_csv

    try:
        raw = load_raw_counts_csv(input)
        indices, batch = compute_index_frame(raw)
    except (SegflowError, ValidationError, FileNotFoundError, pl.exceptions.PolarsError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    report = validate_tract_indices(batch.indices)
    adapter = CsvOutputAdapter(flag_anomalies=flag_anomalies, write_metadata=metadata)
    path = adapter.write(indices, output, batch=batch)

    typer.echo(batch.summary())
    typer.echo(report.summary())
    typer.echo(f"Wrote indices to {path}")


@app.command()
def run(
    config: str = typer.Option(..., help="Path to run config YAML"),
) -> None:
    """
    Run fetch, compute and export as described by a config file.

    Example:
        segflow run --config configs/nyc_ice_2019.yaml
    """
    import polars as pl

    from segflow.core.schema import load_run_config
    from segflow.runner import run_ice

    try:
        run_config = load_run_config(config)
        result = run_ice(run_config)
    except (SegflowError, ValidationError, FileNotFoundError, pl.exceptions.PolarsError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(result.batch.summary())
    typer.echo(result.report.summary())
    typer.echo(f"Wrote indices to {result.output_path}")


@app.command()
def shootings(
    input: str = typer.Option(..., help="NYPD shooting incident CSV"),
    output: str | None = typer.Option(None, help="Output path for the counts CSV"),
    by: Annotated[list[str] | None, typer.Option(help="Column to group by (repeatable)")] = None,
) -> None:
    """Count shooting incidents per group (default: borough and year)."""
    import polars as pl

    from segflow.datasets.nyc_shootings.mapping import count_incidents, load_nyc_shootings

    try:
        counts = count_incidents(load_nyc_shootings(input), group_by=by)
    except (ValueError, FileNotFoundError, pl.exceptions.PolarsError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    if output is None:
        typer.echo(str(counts))
        return

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    counts.write_csv(out)
    typer.echo(f"Wrote {len(counts)} rows to {out}")


@app.command()
def validate(
    config: str = typer.Option(..., help="Path to config YAML to validate"),
) -> None:
    """Validate a configuration file."""
    from segflow.core.schema import load_run_config

    try:
        load_run_config(config)
    except (SegflowError, ValidationError) as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"✓ Valid run configuration: {config}")


@app.command()
def list_variables() -> None:
    """List the ACS variables requested for each tract."""
    from segflow.datasets.acs.variables import REQUEST_VARIABLES

    typer.echo("ACS variables:")
    for var in REQUEST_VARIABLES:
        typer.echo(f"  {var.value:<14} -> {var.column}")


@app.command()
def version() -> None:
    """Show segflow version."""
    from segflow import __version__

    typer.echo(f"segflow version {__version__}")


if __name__ == "__main__":
    app()
