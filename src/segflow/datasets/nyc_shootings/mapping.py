"""Data loading and retyping for the NYPD shooting incident extract."""

from pathlib import Path

import polars as pl

from segflow.core.utils import get_logger
from segflow.datasets.nyc_shootings.schema import (
    DATE_FORMAT,
    REQUIRED_COLUMNS,
    SHOOTING_COLUMNS,
    TIME_FORMAT,
)

logger = get_logger(__name__)


def load_raw_shootings(path: str | Path) -> pl.LazyFrame:
    """
    Load the raw incident CSV with every column read as text.

    Args:
        path: Path to the CSV export

    Returns:
        LazyFrame with lower-cased column names
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Shooting incident file not found: {path}")

    logger.info("Loading shooting incidents from: %s", path)
    lf = pl.scan_csv(path, infer_schema_length=0)
    lf = lf.rename({col: col.strip().lower() for col in lf.collect_schema().names()})

    columns = lf.collect_schema().names()
    missing = [col for col in REQUIRED_COLUMNS if col not in columns]
    if missing:
        raise ValueError(f"Shooting incident file is missing columns: {missing}")

    return lf.select([col for col in SHOOTING_COLUMNS if col in columns])


def clean_shootings(lf: pl.LazyFrame) -> pl.LazyFrame:
    """
    Retype incident columns.

    Args:
        lf: Raw LazyFrame from load_raw_shootings

    Returns:
        Cleaned LazyFrame with occurred_at, year and typed numeric columns
    """
    logger.info("Applying data cleaning to shooting incidents")
    columns = lf.collect_schema().names()

    # Parse date and time into a single timestamp
    lf = lf.with_columns(
        [
            pl.col("occur_date").str.to_date(DATE_FORMAT, strict=False).alias("occur_date"),
            pl.col("occur_time").str.to_time(TIME_FORMAT, strict=False).alias("occur_time"),
        ]
    )
    lf = lf.with_columns(
        [
            pl.col("occur_date").dt.combine(pl.col("occur_time")).alias("occurred_at"),
            pl.col("occur_date").dt.year().alias("year"),
        ]
    )

    lf = lf.with_columns(
        [
            pl.col("latitude").cast(pl.Float64, strict=False),
            pl.col("longitude").cast(pl.Float64, strict=False),
        ]
    )

    if "precinct" in columns:
        lf = lf.with_columns(pl.col("precinct").cast(pl.Int32, strict=False))

    # Convert boolean-like column
    if "statistical_murder_flag" in columns:
        lf = lf.with_columns(
            (pl.col("statistical_murder_flag").str.to_lowercase() == "true").alias(
                "statistical_murder_flag"
            )
        )

    # Filter out rows with missing or invalid coordinates
    lf = lf.filter(pl.col("latitude").is_not_null() & pl.col("longitude").is_not_null())
    lf = lf.filter(
        (pl.col("latitude").is_between(-90, 90)) & (pl.col("longitude").is_between(-180, 180))
    )

    logger.info("Data cleaning completed")
    return lf


def load_nyc_shootings(path: str | Path, apply_cleaning: bool = True) -> pl.LazyFrame:
    """
    Load the NYPD shooting incident extract.

    Args:
        path: Path to the CSV export
        apply_cleaning: Whether to retype columns and drop rows without coordinates

    Returns:
        LazyFrame of incidents
    """
    lf = load_raw_shootings(path)
    if apply_cleaning:
        lf = clean_shootings(lf)
    return lf


def count_incidents(
    lf: pl.LazyFrame,
    group_by: list[str] | None = None,
    count_col: str = "incident_count",
) -> pl.DataFrame:
    """
    Compute incident counts per group.

    Args:
        lf: Cleaned incidents
        group_by: Columns to group by (default ["boro", "year"])
        count_col: Name of the count column

    Returns:
        DataFrame of counts sorted by the group columns, with a murder_count
        column when the murder flag is present
    """
    group_by = group_by or ["boro", "year"]
    columns = lf.collect_schema()

    missing = [col for col in group_by if col not in columns]
    if missing:
        raise ValueError(f"Cannot group incidents by missing columns: {missing}")

    logger.info("Aggregating incident counts by: %s", group_by)
    aggs = [pl.len().alias(count_col)]
    if columns.get("statistical_murder_flag") == pl.Boolean:
        aggs.append(pl.col("statistical_murder_flag").cast(pl.Int64).sum().alias("murder_count"))

    return lf.group_by(group_by).agg(aggs).sort(group_by).collect()
