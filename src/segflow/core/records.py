"""Conversion between raw-count table rows and tract records."""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from segflow.core.exceptions import MissingFieldError, TractShapeError
from segflow.core.schema import SkippedTract, TractRawCounts
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger

logger = get_logger(__name__)

# Household income brackets, low to high. The first four form the low
# extreme (< $25k), the last four the high extreme (>= $100k).
INCOME_BRACKET_LABELS = (
    "lt_10k",
    "10k_15k",
    "15k_20k",
    "20k_25k",
    "100k_125k",
    "125k_150k",
    "150k_200k",
    "200k_plus",
)

INCOME_ALL_COLUMNS = tuple(f"hh_income_all_{label}" for label in INCOME_BRACKET_LABELS)
INCOME_WHITE_NH_COLUMNS = tuple(f"hh_income_white_nh_{label}" for label in INCOME_BRACKET_LABELS)

POPULATION_COLUMNS = (
    "total_population",
    "total_black",
    "total_hispanic",
    "total_white_nonhispanic",
)
POVERTY_COLUMNS = ("in_poverty", "total_for_poverty_estimate")

COUNT_COLUMNS: tuple[str, ...] = (
    POPULATION_COLUMNS
    + ("household_income_total",)
    + INCOME_ALL_COLUMNS
    + INCOME_WHITE_NH_COLUMNS
    + POVERTY_COLUMNS
)

# Column layout of a raw counts table.
RAW_COLUMNS: tuple[str, ...] = ("geo_id",) + COUNT_COLUMNS


def validate_raw_columns(columns: Iterable[str]) -> None:
    """
    Check that a raw counts table carries every required column.

    Args:
        columns: Column names of the table

    Raises:
        TractShapeError: If any required column is absent
    """
    present = set(columns)
    missing = [col for col in RAW_COLUMNS if col not in present]
    if missing:
        raise TractShapeError(f"Raw counts table is missing columns: {', '.join(missing)}")


def row_to_raw_counts(
    row: Mapping[str, Any],
    strict: bool = False,
) -> TractRawCounts | SkippedTract:
    """
    Build a TractRawCounts record from a raw table row.

    Args:
        row: Mapping of column name to value
        strict: Raise instead of returning a SkippedTract when counts are missing
            or invalid

    Returns:
        The record, or a SkippedTract naming the missing or invalid columns

    Raises:
        MissingFieldError: If strict and any count is null
        ValidationError: If strict and any count is negative or not an integer
    """
    geo_id = row.get("geo_id")
    missing = [col for col in RAW_COLUMNS if row.get(col) is None]

    if missing:
        tract_id = "" if geo_id is None else str(geo_id)
        if strict:
            raise MissingFieldError(tract_id, missing)
        logger.debug("Tract %s is missing %s", tract_id, missing)
        return SkippedTract(geo_id=tract_id, reason="missing_field", fields=tuple(missing))

    tract_id = str(geo_id)
    try:
        return TractRawCounts(
            geo_id=tract_id,
            total_population=row["total_population"],
            total_black=row["total_black"],
            total_hispanic=row["total_hispanic"],
            total_white_nonhispanic=row["total_white_nonhispanic"],
            household_income_total=row["household_income_total"],
            household_income_brackets_all=tuple(row[col] for col in INCOME_ALL_COLUMNS),
            household_income_brackets_white_nonhispanic=tuple(
                row[col] for col in INCOME_WHITE_NH_COLUMNS
            ),
            in_poverty=row["in_poverty"],
            total_for_poverty_estimate=row["total_for_poverty_estimate"],
        )
    except ValidationError as e:
        if strict:
            raise
        invalid = _invalid_columns(e)
        logger.debug("Tract %s has invalid counts in %s", tract_id, invalid)
        return SkippedTract(geo_id=tract_id, reason="invalid_value", fields=invalid)


def _invalid_columns(error: ValidationError) -> tuple[str, ...]:
    """Raw column names named by the locations of a TractRawCounts validation error."""
    bracket_columns = {
        "household_income_brackets_all": INCOME_ALL_COLUMNS,
        "household_income_brackets_white_nonhispanic": INCOME_WHITE_NH_COLUMNS,
    }
    columns: list[str] = []
    for err in error.errors():
        loc = err["loc"]
        name = str(loc[0]) if loc else ""
        if name in bracket_columns and len(loc) > 1 and isinstance(loc[1], int):
            name = bracket_columns[name][loc[1]]
        if name not in columns:
            columns.append(name)
    return tuple(columns)


def frame_to_raw_counts(frame: TractFrame) -> list[TractRawCounts | SkippedTract]:
    """
    Convert every row of a raw counts TractFrame into a record.

    Args:
        frame: TractFrame with RAW_COLUMNS

    Returns:
        Records and skipped tracts in table order

    Raises:
        TractShapeError: If the table is missing a required column
    """
    validate_raw_columns(frame.columns)
    return [row_to_raw_counts(row) for row in frame.iter_rows()]


def raw_counts_to_row(record: TractRawCounts) -> dict[str, Any]:
    """Flatten a TractRawCounts record into a raw table row."""
    row: dict[str, Any] = {
        "geo_id": record.geo_id,
        "total_population": record.total_population,
        "total_black": record.total_black,
        "total_hispanic": record.total_hispanic,
        "total_white_nonhispanic": record.total_white_nonhispanic,
        "household_income_total": record.household_income_total,
    }
    row.update(zip(INCOME_ALL_COLUMNS, record.household_income_brackets_all))
    row.update(zip(INCOME_WHITE_NH_COLUMNS, record.household_income_brackets_white_nonhispanic))
    row["in_poverty"] = record.in_poverty
    row["total_for_poverty_estimate"] = record.total_for_poverty_estimate
    return row
