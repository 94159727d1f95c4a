"""Cleaning and loading of raw ACS count tables."""

from pathlib import Path

import polars as pl

from segflow.core.records import COUNT_COLUMNS, validate_raw_columns
from segflow.core.schema import TractMetadata
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger

logger = get_logger(__name__)


def clean_raw_counts(lf: pl.LazyFrame) -> pl.LazyFrame:
    """
    Apply basic cleaning to a raw counts table.

    Casts count columns to Int64 and replaces ACS annotation sentinels
    (negative values such as -666666666) with nulls, so that affected tracts
    surface as missing fields rather than as counts.

    Args:
        lf: LazyFrame with geo_id and count columns

    Returns:
        Cleaned LazyFrame

    Raises:
        TractShapeError: If a required column is absent
    """
    validate_raw_columns(lf.collect_schema().names())

    lf = lf.with_columns(
        [pl.col("geo_id").cast(pl.Utf8)]
        + [pl.col(col).cast(pl.Int64, strict=False) for col in COUNT_COLUMNS]
    )

    # ACS reports unavailable estimates as large negative sentinels
    lf = lf.with_columns(
        [
            pl.when(pl.col(col) < 0).then(None).otherwise(pl.col(col)).alias(col)
            for col in COUNT_COLUMNS
        ]
    )

    logger.debug("Cleaned raw counts table")
    return lf


def load_raw_counts_csv(
    path: str | Path,
    metadata: TractMetadata | None = None,
) -> TractFrame:
    """
    Load a raw counts CSV, as written by ``segflow fetch``, as a TractFrame.

    Args:
        path: Path to the CSV file
        metadata: Optional metadata; defaults to one named after the file

    Returns:
        TractFrame of cleaned raw counts
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Raw counts file not found: {path}")

    logger.info("Loading raw counts from: %s", path)
    lf = pl.scan_csv(path, schema_overrides={"geo_id": pl.Utf8})

    if metadata is None:
        metadata = TractMetadata(dataset_name=path.stem)

    return TractFrame(clean_raw_counts(lf), metadata)
