"""Common test fixtures and utilities."""

from collections.abc import Callable
from typing import Any

import polars as pl
import pytest

from segflow.core.records import COUNT_COLUMNS, raw_counts_to_row
from segflow.core.schema import TractMetadata, TractRawCounts
from segflow.core.tract_frame import TractFrame

RAW_SCHEMA: dict[str, Any] = {"geo_id": pl.Utf8, **{col: pl.Int64 for col in COUNT_COLUMNS}}

BASE_COUNTS: dict[str, Any] = {
    "geo_id": "36005000100",
    "total_population": 1000,
    "total_black": 100,
    "total_hispanic": 50,
    "total_white_nonhispanic": 800,
    "household_income_total": 500,
    # low brackets sum to 100, high brackets to 150
    "household_income_brackets_all": (40, 30, 20, 10, 60, 40, 30, 20),
    # low brackets sum to 40, high brackets to 150
    "household_income_brackets_white_nonhispanic": (20, 10, 5, 5, 60, 40, 30, 20),
    "in_poverty": 120,
    "total_for_poverty_estimate": 950,
}


@pytest.fixture
def make_raw_counts() -> Callable[..., TractRawCounts]:
    """Factory for TractRawCounts built from a consistent base tract."""

    def _make(**overrides: Any) -> TractRawCounts:
        return TractRawCounts(**{**BASE_COUNTS, **overrides})

    return _make


@pytest.fixture
def raw_counts(make_raw_counts: Callable[..., TractRawCounts]) -> TractRawCounts:
    """The base tract."""
    return make_raw_counts()


@pytest.fixture
def tract_metadata() -> TractMetadata:
    """Metadata for a small Bronx table."""
    return TractMetadata(
        dataset_name="test-tracts",
        vintage=2019,
        survey="acs5",
        state_fips="36",
        county_fips=["005"],
    )


@pytest.fixture
def raw_rows(make_raw_counts: Callable[..., TractRawCounts]) -> list[dict[str, Any]]:
    """Three raw table rows: a populated tract, an empty tract, and one with a missing count."""
    populated = raw_counts_to_row(make_raw_counts())
    empty = raw_counts_to_row(
        make_raw_counts(
            geo_id="36005000200",
            total_population=0,
            total_black=0,
            total_hispanic=0,
            total_white_nonhispanic=0,
            household_income_total=0,
            household_income_brackets_all=(0,) * 8,
            household_income_brackets_white_nonhispanic=(0,) * 8,
            in_poverty=0,
            total_for_poverty_estimate=0,
        )
    )
    missing = raw_counts_to_row(make_raw_counts(geo_id="36005000300"))
    missing["total_hispanic"] = None
    return [populated, empty, missing]


@pytest.fixture
def raw_frame(raw_rows: list[dict[str, Any]], tract_metadata: TractMetadata) -> TractFrame:
    """TractFrame of the raw rows."""
    return TractFrame.from_rows(raw_rows, tract_metadata, schema=RAW_SCHEMA)
