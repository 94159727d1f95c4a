"""Schema definitions for tract records, metadata and run configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator

from segflow.core.exceptions import ConfigError
from segflow.core.utils import normalize_fips

# Brackets 0..3 are the "low" extreme, 4..7 the "high" extreme.
N_INCOME_BRACKETS = 8
LOW_BRACKETS = slice(0, 4)
HIGH_BRACKETS = slice(4, 8)

ICE_FIELDS = ("ice_race_income", "ice_race", "ice_income")
PROPORTION_FIELDS = (
    "prop_in_poverty",
    "prop_black",
    "prop_hispanic",
    "prop_white_nonhispanic",
)


class TractRawCounts(BaseModel):
    """
    Raw ACS counts for a single Census tract.

    Attributes:
        geo_id: 11-digit tract GEOID (state + county + tract)
        total_population: Denominator for race ratios
        total_black: Black or African American alone, not Hispanic
        total_hispanic: Hispanic or Latino, any race
        total_white_nonhispanic: White alone, not Hispanic
        household_income_total: Households reporting income
        household_income_brackets_all: Households in the 4 low and 4 high brackets
        household_income_brackets_white_nonhispanic: Same brackets, white non-Hispanic householders
        in_poverty: Population with income below the poverty level
        total_for_poverty_estimate: Population for whom poverty status is determined
    """

    model_config = ConfigDict(frozen=True)

    geo_id: str
    total_population: NonNegativeInt
    total_black: NonNegativeInt
    total_hispanic: NonNegativeInt
    total_white_nonhispanic: NonNegativeInt
    household_income_total: NonNegativeInt
    household_income_brackets_all: tuple[NonNegativeInt, ...]
    household_income_brackets_white_nonhispanic: tuple[NonNegativeInt, ...]
    in_poverty: NonNegativeInt
    total_for_poverty_estimate: NonNegativeInt

    @field_validator(
        "household_income_brackets_all",
        "household_income_brackets_white_nonhispanic",
    )
    @classmethod
    def validate_bracket_length(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Bracket arrays must hold exactly the four low and four high brackets."""
        if len(v) != N_INCOME_BRACKETS:
            raise ValueError(f"expected {N_INCOME_BRACKETS} income brackets, got {len(v)}")
        return v


class TractIndices(BaseModel):
    """
    Derived segregation indices for a single Census tract.

    A field is None when its denominator is zero for this tract. Values are
    never clamped, so out-of-range results are preserved as reported.
    """

    model_config = ConfigDict(frozen=True)

    geo_id: str
    ice_race_income: float | None = None
    ice_race: float | None = None
    ice_income: float | None = None
    prop_in_poverty: float | None = None
    prop_black: float | None = None
    prop_hispanic: float | None = None
    prop_white_nonhispanic: float | None = None
    total_population: int

    @property
    def undefined_fields(self) -> list[str]:
        """Names of derived fields that could not be computed."""
        return [name for name in ICE_FIELDS + PROPORTION_FIELDS if getattr(self, name) is None]

    @property
    def is_partial(self) -> bool:
        """True when at least one derived field is undefined."""
        return bool(self.undefined_fields)


# Export column order, also the join contract with the GIS tool.
INDEX_COLUMNS: tuple[str, ...] = tuple(TractIndices.model_fields)


class SkippedTract(BaseModel):
    """A tract excluded from the output, with the reason it was skipped."""

    model_config = ConfigDict(frozen=True)

    geo_id: str
    reason: str
    fields: tuple[str, ...] = ()


class TractMetadata(BaseModel):
    """
    Metadata about a tract table.

    Attributes:
        dataset_name: Name of the dataset (e.g., "nyc_ice")
        vintage: ACS release year
        survey: ACS survey identifier (e.g., "acs5")
        state_fips: Two-digit state FIPS code
        county_fips: Three-digit county FIPS codes covered by the table
        custom: Additional custom metadata
    """

    dataset_name: str
    vintage: int | None = None
    survey: str = "acs5"
    state_fips: str | None = None
    county_fips: list[str] = Field(default_factory=list)
    custom: dict[str, Any] = Field(default_factory=dict)


class AcsConfig(BaseModel):
    """
    Census Data API request settings.

    Attributes:
        year: ACS vintage year
        survey: ACS survey (acs5 for tract-level estimates)
        state: Two-digit state FIPS code
        counties: Three-digit county FIPS codes
        base_url: API root
        api_key_env: Environment variable holding the optional API key
        timeout: Request timeout in seconds
    """

    year: int = 2019
    survey: str = "acs5"
    state: str = "36"
    # Bronx, Kings, New York, Queens, Richmond
    counties: list[str] = Field(default_factory=lambda: ["005", "047", "061", "081", "085"])
    base_url: str = "https://api.census.gov/data"
    api_key_env: str = "CENSUS_API_KEY"
    timeout: float = 30.0

    @field_validator("state", mode="before")
    @classmethod
    def validate_state(cls, v: str | int) -> str:
        return normalize_fips(v, 2)

    @field_validator("counties", mode="before")
    @classmethod
    def validate_counties(cls, v: list[str | int]) -> list[str]:
        if not v:
            raise ValueError("At least one county FIPS code is required")
        return [normalize_fips(code, 3) for code in v]


class OutputConfig(BaseModel):
    """
    Export settings for the indices table.

    Attributes:
        path: Destination CSV path
        flag_anomalies: Append a range_anomaly column
        write_metadata: Write a JSON sidecar next to the CSV
    """

    path: str
    flag_anomalies: bool = False
    write_metadata: bool = True


class ShootingsConfig(BaseModel):
    """Settings for summarising the shooting-incident extract."""

    path: str
    output_path: str | None = None
    group_by: list[str] = Field(default_factory=lambda: ["boro", "year"])


class RunConfig(BaseModel):
    """
    Configuration for an end-to-end run.

    Attributes:
        dataset_name: Name recorded in the output metadata
        acs: Census Data API settings
        raw_counts_path: Read raw counts from this CSV instead of fetching
        raw_output_path: Save fetched raw counts to this CSV
        output: Indices export settings
        shootings: Optional incident summary settings
    """

    dataset_name: str = "nyc_ice"
    acs: AcsConfig = Field(default_factory=AcsConfig)
    raw_counts_path: str | None = None
    raw_output_path: str | None = None
    output: OutputConfig
    shootings: ShootingsConfig | None = None


def load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML mapping from disk.

    Raises:
        ConfigError: If the file is missing or is not a mapping
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    return data


def load_run_config(path: str | Path) -> RunConfig:
    """Load and validate a run configuration from YAML."""
    return RunConfig(**load_yaml(path))
