"""Segflow: tract-level Index of Concentration at the Extremes (ICE) computation."""

__version__ = "0.1.0"

from segflow.core.indices import IndexBatch, compute_indices, compute_tract_indices
from segflow.core.schema import TractIndices, TractMetadata, TractRawCounts
from segflow.core.tract_frame import TractFrame

__all__ = [
    "TractFrame",
    "TractRawCounts",
    "TractIndices",
    "TractMetadata",
    "IndexBatch",
    "compute_indices",
    "compute_tract_indices",
    "__version__",
]
