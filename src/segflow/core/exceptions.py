"""Exception types raised by segflow."""

from __future__ import annotations


class SegflowError(Exception):
    """Base class for segflow errors."""


class TractShapeError(SegflowError, ValueError):
    """The input table or a record does not have the required shape.

    Raised for programming-contract violations such as bracket arrays of the
    wrong length or a raw table missing a required column. Always fatal for
    the run.
    """


class MissingFieldError(SegflowError, ValueError):
    """A required raw count is absent for a tract."""

    def __init__(self, geo_id: str, fields: list[str]) -> None:
        self.geo_id = geo_id
        self.fields = list(fields)
        super().__init__(f"Tract {geo_id!r} is missing raw counts: {', '.join(self.fields)}")


class AcsRequestError(SegflowError):
    """The Census Data API request failed or returned an unusable payload."""


class ConfigError(SegflowError):
    """A configuration file could not be read or parsed."""
