"""Index of Concentration at the Extremes (ICE) calculator.

Each tract is computed independently from its own raw counts:

- ``ice_race_income``: white non-Hispanic households in the top four income
  brackets minus households of color in the bottom four, over all households.
  Low-income households of color are approximated as all low-income
  households minus white non-Hispanic low-income households.
- ``ice_income``: households in the top four brackets minus the bottom four,
  over total population.
- ``ice_race``: white non-Hispanic minus everyone else, over total population.
- ``prop_*``: poverty rate and racial composition shares.

A zero denominator leaves only the fields that depend on it undefined (None).
Nothing is clamped: values outside the theoretical range point at
inconsistent upstream counts and are kept as computed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import polars as pl

from segflow.core.exceptions import TractShapeError
from segflow.core.records import frame_to_raw_counts
from segflow.core.schema import (
    HIGH_BRACKETS,
    INDEX_COLUMNS,
    LOW_BRACKETS,
    N_INCOME_BRACKETS,
    SkippedTract,
    TractIndices,
    TractRawCounts,
)
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger, safe_ratio

logger = get_logger(__name__)

INDEX_SCHEMA: dict[str, pl.DataType] = {
    "geo_id": pl.Utf8(),
    "ice_race_income": pl.Float64(),
    "ice_race": pl.Float64(),
    "ice_income": pl.Float64(),
    "prop_in_poverty": pl.Float64(),
    "prop_black": pl.Float64(),
    "prop_hispanic": pl.Float64(),
    "prop_white_nonhispanic": pl.Float64(),
    "total_population": pl.Int64(),
}


@dataclass
class IndexBatch:
    """Result of computing indices over a sequence of tracts."""

    indices: list[TractIndices] = field(default_factory=list)
    skipped: list[SkippedTract] = field(default_factory=list)

    @property
    def partial(self) -> list[str]:
        """geo_ids of computed tracts with at least one undefined field."""
        return [idx.geo_id for idx in self.indices if idx.is_partial]

    @property
    def n_total(self) -> int:
        return len(self.indices) + len(self.skipped)

    def undefined_counts(self) -> dict[str, int]:
        """Number of tracts for which each derived field is undefined."""
        counts: dict[str, int] = {}
        for idx in self.indices:
            for name in idx.undefined_fields:
                counts[name] = counts.get(name, 0) + 1
        return counts

    def summary(self) -> str:
        """Generate a summary string."""
        lines = [
            f"Index Summary: {len(self.indices)}/{self.n_total} tracts computed",
            f"  Partial: {len(self.partial)}",
            f"  Skipped: {len(self.skipped)}",
        ]

        undefined = self.undefined_counts()
        if undefined:
            lines.append("\nUndefined fields:")
            for name in sorted(undefined):
                lines.append(f"  - {name}: {undefined[name]}")

        if self.skipped:
            lines.append("\nSkipped tracts:")
            for s in self.skipped:
                detail = f" ({', '.join(s.fields)})" if s.fields else ""
                lines.append(f"  - {s.geo_id}: {s.reason}{detail}")

        return "\n".join(lines)


def _check_shape(raw: TractRawCounts) -> None:
    for name in ("household_income_brackets_all", "household_income_brackets_white_nonhispanic"):
        brackets = getattr(raw, name)
        if len(brackets) != N_INCOME_BRACKETS:
            raise TractShapeError(
                f"Tract {raw.geo_id!r}: {name} has {len(brackets)} brackets, "
                f"expected {N_INCOME_BRACKETS}"
            )


def compute_tract_indices(raw: TractRawCounts) -> TractIndices:
    """
    Compute the derived indices for one tract.

    Args:
        raw: Raw counts for the tract

    Returns:
        TractIndices with None for every field whose denominator is zero

    Raises:
        TractShapeError: If either bracket array does not hold 8 brackets
    """
    _check_shape(raw)

    brackets_all = raw.household_income_brackets_all
    brackets_white_nh = raw.household_income_brackets_white_nonhispanic

    low_income_all = sum(brackets_all[LOW_BRACKETS])
    low_income_white_nh = sum(brackets_white_nh[LOW_BRACKETS])
    nonwhite_low_income = low_income_all - low_income_white_nh
    high_income_white_nh = sum(brackets_white_nh[HIGH_BRACKETS])
    high_income_all = sum(brackets_all[HIGH_BRACKETS])

    pop = raw.total_population
    white_nh = raw.total_white_nonhispanic

    return TractIndices(
        geo_id=raw.geo_id,
        ice_race_income=safe_ratio(
            high_income_white_nh - nonwhite_low_income, raw.household_income_total
        ),
        ice_race=safe_ratio(white_nh - (pop - white_nh), pop),
        ice_income=safe_ratio(high_income_all - low_income_all, pop),
        prop_in_poverty=safe_ratio(raw.in_poverty, raw.total_for_poverty_estimate),
        prop_black=safe_ratio(raw.total_black, pop),
        prop_hispanic=safe_ratio(raw.total_hispanic, pop),
        prop_white_nonhispanic=safe_ratio(white_nh, pop),
        total_population=pop,
    )


def compute_indices(records: Iterable[TractRawCounts | SkippedTract]) -> IndexBatch:
    """
    Compute indices for a sequence of tracts.

    SkippedTract entries (tracts whose raw counts were missing or invalid)
    are carried into the batch accounting. Output order follows input order.

    Args:
        records: Raw counts, possibly interleaved with skipped tracts

    Returns:
        IndexBatch with computed indices and skipped tracts

    Raises:
        TractShapeError: If any record has malformed bracket arrays
    """
    batch = IndexBatch()

    for record in records:
        if isinstance(record, SkippedTract):
            batch.skipped.append(record)
            continue
        batch.indices.append(compute_tract_indices(record))

    logger.info(
        "Computed indices for %s/%s tracts (%s partial, %s skipped)",
        len(batch.indices),
        batch.n_total,
        len(batch.partial),
        len(batch.skipped),
    )
    if batch.skipped:
        logger.warning(
            "Skipped %s tracts with missing or invalid raw counts: %s",
            len(batch.skipped),
            [s.geo_id for s in batch.skipped],
        )

    return batch


def indices_to_frame(indices: Iterable[TractIndices]) -> pl.DataFrame:
    """Build a DataFrame of indices with the fixed export column order."""
    rows = [idx.model_dump() for idx in indices]
    return pl.DataFrame(rows, schema=INDEX_SCHEMA).select(list(INDEX_COLUMNS))


def compute_index_frame(frame: TractFrame) -> tuple[TractFrame, IndexBatch]:
    """
    Compute indices for every row of a raw counts TractFrame.

    Args:
        frame: TractFrame with the raw counts columns

    Returns:
        TractFrame of indices carrying the input metadata, and the batch accounting

    Raises:
        TractShapeError: If the table is missing a required column
    """
    logger.info("Computing indices for dataset '%s'", frame.metadata.dataset_name)
    batch = compute_indices(frame_to_raw_counts(frame))
    result = TractFrame(indices_to_frame(batch.indices).lazy(), frame.metadata)
    return result, batch
