"""ACS variable codes and the raw columns they populate."""

from enum import Enum

from segflow.core.records import (
    INCOME_ALL_COLUMNS,
    INCOME_WHITE_NH_COLUMNS,
    POPULATION_COLUMNS,
    POVERTY_COLUMNS,
    RAW_COLUMNS,
)


class AcsVariable(str, Enum):
    """ACS 5-year detailed-table variables used for the tract indices."""

    # B03002: Hispanic or Latino origin by race
    TOTAL_POPULATION = "B03002_001E"
    WHITE_NONHISPANIC = "B03002_003E"
    BLACK_NONHISPANIC = "B03002_004E"
    HISPANIC = "B03002_012E"

    # B19001: Household income in the past 12 months
    HH_INCOME_TOTAL = "B19001_001E"
    HH_INCOME_LT_10K = "B19001_002E"
    HH_INCOME_10K_15K = "B19001_003E"
    HH_INCOME_15K_20K = "B19001_004E"
    HH_INCOME_20K_25K = "B19001_005E"
    HH_INCOME_100K_125K = "B19001_014E"
    HH_INCOME_125K_150K = "B19001_015E"
    HH_INCOME_150K_200K = "B19001_016E"
    HH_INCOME_200K_PLUS = "B19001_017E"

    # B19001H: Household income, white alone not Hispanic householder
    WHITE_NH_INCOME_LT_10K = "B19001H_002E"
    WHITE_NH_INCOME_10K_15K = "B19001H_003E"
    WHITE_NH_INCOME_15K_20K = "B19001H_004E"
    WHITE_NH_INCOME_20K_25K = "B19001H_005E"
    WHITE_NH_INCOME_100K_125K = "B19001H_014E"
    WHITE_NH_INCOME_125K_150K = "B19001H_015E"
    WHITE_NH_INCOME_150K_200K = "B19001H_016E"
    WHITE_NH_INCOME_200K_PLUS = "B19001H_017E"

    # B17001: Poverty status in the past 12 months
    POVERTY_UNIVERSE = "B17001_001E"
    BELOW_POVERTY = "B17001_002E"

    def __str__(self) -> str:  # pragma: no cover - trivial wrapper
        return self.value

    @property
    def column(self) -> str:
        """Raw counts column populated by this variable."""
        return VARIABLE_COLUMNS[self]


RACE_VARIABLES = (
    AcsVariable.TOTAL_POPULATION,
    AcsVariable.BLACK_NONHISPANIC,
    AcsVariable.HISPANIC,
    AcsVariable.WHITE_NONHISPANIC,
)

INCOME_ALL_BRACKETS = (
    AcsVariable.HH_INCOME_LT_10K,
    AcsVariable.HH_INCOME_10K_15K,
    AcsVariable.HH_INCOME_15K_20K,
    AcsVariable.HH_INCOME_20K_25K,
    AcsVariable.HH_INCOME_100K_125K,
    AcsVariable.HH_INCOME_125K_150K,
    AcsVariable.HH_INCOME_150K_200K,
    AcsVariable.HH_INCOME_200K_PLUS,
)

INCOME_WHITE_NH_BRACKETS = (
    AcsVariable.WHITE_NH_INCOME_LT_10K,
    AcsVariable.WHITE_NH_INCOME_10K_15K,
    AcsVariable.WHITE_NH_INCOME_15K_20K,
    AcsVariable.WHITE_NH_INCOME_20K_25K,
    AcsVariable.WHITE_NH_INCOME_100K_125K,
    AcsVariable.WHITE_NH_INCOME_125K_150K,
    AcsVariable.WHITE_NH_INCOME_150K_200K,
    AcsVariable.WHITE_NH_INCOME_200K_PLUS,
)

POVERTY_VARIABLES = (AcsVariable.BELOW_POVERTY, AcsVariable.POVERTY_UNIVERSE)

VARIABLE_COLUMNS: dict[AcsVariable, str] = {
    **dict(zip(RACE_VARIABLES, POPULATION_COLUMNS)),
    AcsVariable.HH_INCOME_TOTAL: "household_income_total",
    **dict(zip(INCOME_ALL_BRACKETS, INCOME_ALL_COLUMNS)),
    **dict(zip(INCOME_WHITE_NH_BRACKETS, INCOME_WHITE_NH_COLUMNS)),
    **dict(zip(POVERTY_VARIABLES, POVERTY_COLUMNS)),
}

# Request order, matching the raw counts column layout.
REQUEST_VARIABLES: tuple[AcsVariable, ...] = tuple(
    sorted(AcsVariable, key=lambda v: RAW_COLUMNS.index(VARIABLE_COLUMNS[v]))
)

# New York City boroughs, state FIPS 36.
NYC_STATE_FIPS = "36"
NYC_COUNTIES = {
    "bronx": "005",
    "brooklyn": "047",
    "manhattan": "061",
    "queens": "081",
    "staten_island": "085",
}
