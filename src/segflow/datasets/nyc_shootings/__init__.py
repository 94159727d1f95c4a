"""NYPD shooting incident dataset adapter."""

from segflow.datasets.nyc_shootings.mapping import count_incidents, load_nyc_shootings

__all__ = [
    "count_incidents",
    "load_nyc_shootings",
]
