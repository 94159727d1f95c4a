"""American Community Survey raw-count source."""

from segflow.datasets.acs.client import AcsClient, parse_response
from segflow.datasets.acs.mapping import clean_raw_counts, load_raw_counts_csv
from segflow.datasets.acs.variables import NYC_COUNTIES, NYC_STATE_FIPS, AcsVariable

__all__ = [
    "AcsClient",
    "AcsVariable",
    "NYC_COUNTIES",
    "NYC_STATE_FIPS",
    "clean_raw_counts",
    "load_raw_counts_csv",
    "parse_response",
]
