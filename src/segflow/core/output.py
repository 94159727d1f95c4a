"""Output adapters for writing tract tables to external targets."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

import polars as pl

from segflow.core.schema import ICE_FIELDS, INDEX_COLUMNS, PROPORTION_FIELDS
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger

if TYPE_CHECKING:
    from segflow.core.indices import IndexBatch

logger = get_logger(__name__)

ANOMALY_COL = "range_anomaly"


class BaseOutputAdapter(ABC):
    """Abstract base class for writing TractFrames to external targets."""

    @abstractmethod
    def write(self, frame: TractFrame, path: Path | str, **kwargs: Any) -> Path:
        """Persist the provided TractFrame and return the written path."""
        raise NotImplementedError

    def describe(self) -> str | None:  # pragma: no cover - simple accessor
        """Optional human-readable description of the adapter."""
        return None


def range_anomaly_expr() -> pl.Expr:
    """Expression that is True for rows with any value outside its theoretical range."""
    checks = [pl.col(name).is_between(-1.0, 1.0).not_().fill_null(False) for name in ICE_FIELDS]
    checks += [
        pl.col(name).is_between(0.0, 1.0).not_().fill_null(False) for name in PROPORTION_FIELDS
    ]
    return pl.any_horizontal(checks).alias(ANOMALY_COL)


class CsvOutputAdapter(BaseOutputAdapter):
    """Write a TractFrame of indices to CSV for GIS re-joining.

    Columns are written in the fixed INDEX_COLUMNS order so the geo_id join
    key is always first. Undefined values are written as empty cells.
    """

    def __init__(self, flag_anomalies: bool = False, write_metadata: bool = True) -> None:
        """
        Initialize the adapter.

        Args:
            flag_anomalies: Append a boolean range_anomaly column
            write_metadata: Write a JSON sidecar next to the CSV
        """
        self.flag_anomalies = flag_anomalies
        self.write_metadata = write_metadata

    def prepare(self, frame: TractFrame) -> pl.DataFrame:
        """Select export columns in their fixed order."""
        missing = [col for col in INDEX_COLUMNS if col not in frame.columns]
        if missing:
            raise ValueError(f"Cannot export indices, missing columns: {missing}")

        lf = frame.lazy_frame.select(list(INDEX_COLUMNS))
        if self.flag_anomalies:
            lf = lf.with_columns(range_anomaly_expr())
        return lf.collect()

    def write(
        self,
        frame: TractFrame,
        path: Path | str,
        batch: IndexBatch | None = None,
        **kwargs: Any,
    ) -> Path:
        """
        Write the indices CSV and, optionally, its metadata sidecar.

        Args:
            frame: TractFrame of indices
            path: Destination CSV path
            batch: Batch accounting to record in the sidecar

        Returns:
            Path of the written CSV
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        df = self.prepare(frame)
        df.write_csv(path)
        logger.info("Wrote %s tracts to %s", len(df), path)

        if self.write_metadata:
            meta_path = path.with_suffix(".meta.json")
            meta_path.write_text(json.dumps(self.build_metadata(frame, df, batch), indent=2))
            logger.debug("Wrote metadata sidecar to %s", meta_path)

        return path

    def build_metadata(
        self,
        frame: TractFrame,
        df: pl.DataFrame,
        batch: IndexBatch | None = None,
    ) -> dict[str, Any]:
        """Assemble the sidecar contents."""
        meta: dict[str, Any] = {
            "dataset": frame.metadata.model_dump(),
            "columns": df.columns,
            "n_rows": len(df),
        }
        if self.flag_anomalies:
            meta["n_range_anomalies"] = int(df[ANOMALY_COL].sum())
        if batch is not None:
            meta["partial"] = batch.partial
            meta["skipped"] = [s.model_dump(mode="json") for s in batch.skipped]
        return meta

    def describe(self) -> str | None:
        return "CSV export of tract indices"


def write_raw_counts_csv(frame: TractFrame, path: Path | str) -> Path:
    """Write a raw counts TractFrame to CSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = frame.collect()
    df.write_csv(path)
    logger.info("Wrote raw counts for %s tracts to %s", len(df), path)
    return path
