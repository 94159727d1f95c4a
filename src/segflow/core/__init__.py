"""Core module containing the index calculator and dataset-agnostic primitives."""

from segflow.core.exceptions import (
    AcsRequestError,
    ConfigError,
    MissingFieldError,
    SegflowError,
    TractShapeError,
)
from segflow.core.indices import (
    IndexBatch,
    compute_index_frame,
    compute_indices,
    compute_tract_indices,
    indices_to_frame,
)
from segflow.core.output import BaseOutputAdapter, CsvOutputAdapter
from segflow.core.schema import (
    INDEX_COLUMNS,
    RunConfig,
    SkippedTract,
    TractIndices,
    TractMetadata,
    TractRawCounts,
)
from segflow.core.tract_frame import TractFrame

__all__ = [
    "TractFrame",
    "TractRawCounts",
    "TractIndices",
    "TractMetadata",
    "SkippedTract",
    "RunConfig",
    "INDEX_COLUMNS",
    "IndexBatch",
    "compute_tract_indices",
    "compute_indices",
    "compute_index_frame",
    "indices_to_frame",
    "BaseOutputAdapter",
    "CsvOutputAdapter",
    "SegflowError",
    "TractShapeError",
    "MissingFieldError",
    "AcsRequestError",
    "ConfigError",
]
