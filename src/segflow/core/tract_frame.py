"""TractFrame: table of per-tract rows with its metadata."""

from collections.abc import Iterable
from typing import Any

import polars as pl

from segflow.core.schema import TractMetadata
from segflow.core.utils import get_logger

logger = get_logger(__name__)


class TractFrame:
    """
    Table of per-tract rows.

    Wraps a Polars LazyFrame keyed by ``geo_id`` together with metadata
    describing where the rows came from (ACS vintage, state, counties).
    Transformations return new TractFrames; the wrapped frame is never
    mutated in place.

    Attributes:
        lazy_frame: The underlying Polars LazyFrame
        metadata: Metadata about the table
    """

    key_col = "geo_id"

    def __init__(self, lazy_frame: pl.LazyFrame, metadata: TractMetadata) -> None:
        """
        Initialize a TractFrame.

        Args:
            lazy_frame: Polars LazyFrame with one row per tract
            metadata: Metadata about the table

        Raises:
            ValueError: If the frame has no geo_id column
        """
        columns = lazy_frame.collect_schema().names()
        if self.key_col not in columns:
            raise ValueError(f"TractFrame requires a '{self.key_col}' column, got {columns}")

        self.lazy_frame = lazy_frame
        self.metadata = metadata
        logger.debug(
            "Created TractFrame for dataset '%s' with %s columns",
            metadata.dataset_name,
            len(columns),
        )

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[dict[str, Any]],
        metadata: TractMetadata,
        schema: dict[str, pl.DataType] | None = None,
    ) -> "TractFrame":
        """Build a TractFrame from row dictionaries."""
        df = pl.DataFrame(list(rows), schema=schema)
        return cls(df.lazy(), metadata)

    @property
    def columns(self) -> list[str]:
        """Column names of the wrapped frame."""
        return self.lazy_frame.collect_schema().names()

    def with_lazy_frame(self, lazy_frame: pl.LazyFrame) -> "TractFrame":
        """
        Create a new TractFrame with a different LazyFrame.

        Args:
            lazy_frame: New LazyFrame to wrap

        Returns:
            New TractFrame with the same metadata
        """
        return TractFrame(lazy_frame, self.metadata)

    def with_metadata(self, **updates: Any) -> "TractFrame":
        """
        Create a new TractFrame with updated metadata.

        Args:
            **updates: Metadata fields to update

        Returns:
            New TractFrame with updated metadata
        """
        return TractFrame(self.lazy_frame, self.metadata.model_copy(update=updates))

    def collect(self) -> pl.DataFrame:
        """Materialize the lazy frame into a DataFrame."""

        logger.debug("Collecting TractFrame for dataset '%s'", self.metadata.dataset_name)
        df = self.lazy_frame.collect()
        logger.info("Collected %s tracts, %s columns", len(df), len(df.columns))
        return df

    def iter_rows(self) -> Iterable[dict[str, Any]]:
        """Iterate over rows as dictionaries, in table order."""

        return self.lazy_frame.collect().iter_rows(named=True)

    def head(self, n: int = 5) -> pl.DataFrame:
        """Collect the first *n* rows."""

        return self.lazy_frame.head(n).collect()

    def select(self, *exprs: pl.Expr | str) -> "TractFrame":
        """Return a new TractFrame selecting the provided expressions."""

        return self.with_lazy_frame(self.lazy_frame.select(*exprs))

    def filter(self, *predicates: pl.Expr) -> "TractFrame":
        """Return a new TractFrame filtered by the predicates."""

        return self.with_lazy_frame(self.lazy_frame.filter(*predicates))

    def with_columns(self, *exprs: pl.Expr, **named_exprs: pl.Expr) -> "TractFrame":
        """Return a new TractFrame with additional or transformed columns."""

        return self.with_lazy_frame(self.lazy_frame.with_columns(*exprs, **named_exprs))

    def count(self) -> int:
        """Return the number of tracts."""

        result = self.lazy_frame.select(pl.len().alias("_count")).collect()
        rows = result.rows()
        return int(rows[0][0]) if rows else 0

    def __repr__(self) -> str:
        """String representation of the TractFrame."""

        return (
            "TractFrame(\n"
            f"  dataset={self.metadata.dataset_name},\n"
            f"  vintage={self.metadata.vintage},\n"
            f"  state={self.metadata.state_fips},\n"
            f"  counties={self.metadata.county_fips}\n"
            ")"
        )

    def __len__(self) -> int:
        """Return the number of tracts."""

        return self.count()
