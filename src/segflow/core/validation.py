"""Validation checks for derived tract indices.

This module provides checks for:
- ICE values outside [-1, 1]
- Proportions outside [0, 1]
- Consistency of ice_race with the white non-Hispanic share

Out-of-range values are reported at warning severity. They indicate
inconsistent upstream counts and are never corrected here.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from segflow.core.schema import ICE_FIELDS, PROPORTION_FIELDS, TractIndices
from segflow.core.utils import get_logger, is_out_of_range

logger = get_logger(__name__)

ICE_RANGE = (-1.0, 1.0)
PROPORTION_RANGE = (0.0, 1.0)


@dataclass
class ValidationResult:
    """Result of a validation check."""

    is_valid: bool
    check_name: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    severity: str = "error"  # error, warning, info


@dataclass
class ValidationReport:
    """Collection of validation results."""

    results: list[ValidationResult] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if all validations passed (no errors)."""
        return all(r.is_valid or r.severity != "error" for r in self.results)

    @property
    def errors(self) -> list[ValidationResult]:
        """Get all error-level failures."""
        return [r for r in self.results if not r.is_valid and r.severity == "error"]

    @property
    def warnings(self) -> list[ValidationResult]:
        """Get all warning-level issues."""
        return [r for r in self.results if not r.is_valid and r.severity == "warning"]

    def add(self, result: ValidationResult) -> None:
        """Add a validation result."""
        self.results.append(result)

    def summary(self) -> str:
        """Generate a summary string."""
        n_passed = sum(1 for r in self.results if r.is_valid)
        n_errors = len(self.errors)
        n_warnings = len(self.warnings)

        lines = [
            f"Validation Summary: {n_passed}/{len(self.results)} passed",
            f"  Errors: {n_errors}",
            f"  Warnings: {n_warnings}",
        ]

        if self.errors:
            lines.append("\nErrors:")
            for e in self.errors:
                lines.append(f"  - {e.check_name}: {e.message}")

        if self.warnings:
            lines.append("\nWarnings:")
            for w in self.warnings:
                lines.append(f"  - {w.check_name}: {w.message}")

        return "\n".join(lines)


# -----------------------------------------------------------------------------
# Range checks
# -----------------------------------------------------------------------------


def _find_out_of_range(
    indices: Sequence[TractIndices],
    fields: Sequence[str],
    bounds: tuple[float, float],
) -> dict[str, list[str]]:
    low, high = bounds
    found: dict[str, list[str]] = {}
    for idx in indices:
        bad = [name for name in fields if is_out_of_range(getattr(idx, name), low, high)]
        if bad:
            found[idx.geo_id] = bad
    return found


def find_range_anomalies(indices: Sequence[TractIndices]) -> dict[str, list[str]]:
    """Map each geo_id with out-of-range values to the offending field names.

    Args:
        indices: Computed tract indices

    Returns:
        Dictionary of geo_id to field names, only for tracts with anomalies
    """
    anomalies = _find_out_of_range(indices, ICE_FIELDS, ICE_RANGE)
    for geo_id, names in _find_out_of_range(indices, PROPORTION_FIELDS, PROPORTION_RANGE).items():
        anomalies.setdefault(geo_id, []).extend(names)
    return anomalies


def validate_index_bounds(indices: Sequence[TractIndices]) -> ValidationResult:
    """Validate that the ICE fields lie in [-1, 1].

    Args:
        indices: Computed tract indices

    Returns:
        ValidationResult at warning severity when any value is out of range
    """
    anomalies = _find_out_of_range(indices, ICE_FIELDS, ICE_RANGE)
    is_valid = not anomalies

    return ValidationResult(
        is_valid=is_valid,
        check_name="index_bounds",
        message=(
            "All ICE values are within [-1, 1]"
            if is_valid
            else f"Found {len(anomalies)} tracts with ICE values outside [-1, 1]"
        ),
        details={"anomalies": anomalies},
        severity="warning" if not is_valid else "info",
    )


def validate_proportion_bounds(indices: Sequence[TractIndices]) -> ValidationResult:
    """Validate that the prop_* fields lie in [0, 1].

    Args:
        indices: Computed tract indices

    Returns:
        ValidationResult at warning severity when any value is out of range
    """
    anomalies = _find_out_of_range(indices, PROPORTION_FIELDS, PROPORTION_RANGE)
    is_valid = not anomalies

    return ValidationResult(
        is_valid=is_valid,
        check_name="proportion_bounds",
        message=(
            "All proportions are within [0, 1]"
            if is_valid
            else f"Found {len(anomalies)} tracts with proportions outside [0, 1]"
        ),
        details={"anomalies": anomalies},
        severity="warning" if not is_valid else "info",
    )


def validate_ice_race_identity(
    indices: Sequence[TractIndices],
    tolerance: float = 1e-9,
) -> ValidationResult:
    """Validate that ice_race equals 2 * prop_white_nonhispanic - 1.

    Both fields share the total population denominator, so they are either
    both defined or both undefined.

    Args:
        indices: Computed tract indices
        tolerance: Absolute tolerance for the comparison

    Returns:
        ValidationResult indicating pass/fail
    """
    mismatched: list[str] = []
    for idx in indices:
        if idx.ice_race is None or idx.prop_white_nonhispanic is None:
            if (idx.ice_race is None) != (idx.prop_white_nonhispanic is None):
                mismatched.append(idx.geo_id)
            continue
        expected = 2 * idx.prop_white_nonhispanic - 1
        if not math.isclose(idx.ice_race, expected, rel_tol=0.0, abs_tol=tolerance):
            mismatched.append(idx.geo_id)

    is_valid = not mismatched

    return ValidationResult(
        is_valid=is_valid,
        check_name="ice_race_identity",
        message=(
            "ice_race matches 2 * prop_white_nonhispanic - 1"
            if is_valid
            else f"Found {len(mismatched)} tracts where ice_race disagrees with prop_white_nonhispanic"
        ),
        details={"mismatched": mismatched, "tolerance": tolerance},
        severity="error" if not is_valid else "info",
    )


# -----------------------------------------------------------------------------
# Composite Validators
# -----------------------------------------------------------------------------


def validate_tract_indices(indices: Sequence[TractIndices]) -> ValidationReport:
    """Run every index check.

    Args:
        indices: Computed tract indices

    Returns:
        ValidationReport with all check results
    """
    report = ValidationReport()
    report.add(validate_index_bounds(indices))
    report.add(validate_proportion_bounds(indices))
    report.add(validate_ice_race_identity(indices))

    for w in report.warnings:
        logger.warning("%s: %s", w.check_name, w.message)
    for e in report.errors:
        logger.error("%s: %s", e.check_name, e.message)

    return report
