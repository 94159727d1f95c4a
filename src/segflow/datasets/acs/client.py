"""Census Data API client for tract-level ACS estimates."""

from __future__ import annotations

import os
from typing import Any

import polars as pl
import requests

from segflow.core.exceptions import AcsRequestError
from segflow.core.schema import AcsConfig, TractMetadata
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger, normalize_fips
from segflow.datasets.acs.mapping import clean_raw_counts
from segflow.datasets.acs.variables import REQUEST_VARIABLES

logger = get_logger(__name__)

GEOGRAPHY_COLS = ("state", "county", "tract")


class AcsClient:
    """
    Fetch ACS detailed-table estimates for every tract in a county.

    One GET request is issued per county. The API answers with a JSON array
    of arrays whose first row is the header.
    """

    def __init__(
        self,
        year: int = 2019,
        survey: str = "acs5",
        api_key: str | None = None,
        base_url: str = "https://api.census.gov/data",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            year: ACS vintage year
            survey: ACS survey (acs5 for tract-level estimates)
            api_key: Optional Census API key
            base_url: API root
            timeout: Request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.year = year
        self.survey = survey
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: AcsConfig) -> AcsClient:
        """Create a client from an AcsConfig, reading the key from the environment."""
        api_key = os.getenv(config.api_key_env)
        if not api_key:
            logger.warning(
                "%s not set; requesting without an API key (rate limited)", config.api_key_env
            )
        return cls(
            year=config.year,
            survey=config.survey,
            api_key=api_key,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.year}/acs/{self.survey}"

    def build_params(self, state: str, county: str) -> dict[str, str]:
        """Query parameters for all tracts of one county."""
        params = {
            "get": ",".join(v.value for v in REQUEST_VARIABLES),
            "for": "tract:*",
            "in": f"state:{state} county:{county}",
        }
        if self.api_key:
            params["key"] = self.api_key
        return params

    def fetch_county(self, state: str, county: str) -> pl.DataFrame:
        """
        Fetch raw counts for every tract in one county.

        Args:
            state: State FIPS code
            county: County FIPS code

        Returns:
            DataFrame with geo_id and raw count columns

        Raises:
            AcsRequestError: If the request fails or the payload is malformed
        """
        state = normalize_fips(state, 2)
        county = normalize_fips(county, 3)
        logger.info(
            "Fetching ACS %s %s tracts for state %s county %s",
            self.year,
            self.survey,
            state,
            county,
        )

        try:
            response = self.session.get(
                self.url,
                params=self.build_params(state, county),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise AcsRequestError(f"ACS request for {state}{county} failed: {e}") from e
        except ValueError as e:
            raise AcsRequestError(f"ACS response for {state}{county} is not JSON: {e}") from e

        df = parse_response(payload)
        logger.info("Received %s tracts for county %s", len(df), county)
        return df

    def fetch_tracts(
        self,
        state: str,
        counties: list[str],
        dataset_name: str = "acs_tracts",
    ) -> TractFrame:
        """
        Fetch raw counts for every tract in the given counties.

        Args:
            state: State FIPS code
            counties: County FIPS codes, fetched in order
            dataset_name: Name recorded in the frame metadata

        Returns:
            TractFrame of cleaned raw counts
        """
        if not counties:
            raise ValueError("At least one county FIPS code is required")

        frames = [self.fetch_county(state, county) for county in counties]
        df = pl.concat(frames, how="vertical")

        metadata = TractMetadata(
            dataset_name=dataset_name,
            vintage=self.year,
            survey=self.survey,
            state_fips=normalize_fips(state, 2),
            county_fips=[normalize_fips(c, 3) for c in counties],
        )
        return TractFrame(clean_raw_counts(df.lazy()), metadata)

    def __repr__(self) -> str:
        return f"AcsClient(year={self.year}, survey={self.survey!r})"


def parse_response(payload: Any) -> pl.DataFrame:
    """
    Turn an API array-of-arrays payload into a raw counts DataFrame.

    Variable codes are renamed to raw column names and the tract GEOID is
    assembled from the state, county and tract columns.

    Raises:
        AcsRequestError: If the header or rows are malformed
    """
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise AcsRequestError("ACS response must be a non-empty array of arrays")

    header = [str(h) for h in payload[0]]
    rows = payload[1:]

    expected = [v.value for v in REQUEST_VARIABLES] + list(GEOGRAPHY_COLS)
    missing = [col for col in expected if col not in header]
    if missing:
        raise AcsRequestError(f"ACS response is missing columns: {missing}")

    for i, row in enumerate(rows, 1):
        if len(row) != len(header):
            raise AcsRequestError(
                f"ACS response row {i} has {len(row)} values, expected {len(header)}"
            )

    df = pl.DataFrame(rows, schema={h: pl.Utf8 for h in header}, orient="row", strict=False)
    renames = {v.value: v.column for v in REQUEST_VARIABLES}

    return df.select(
        pl.concat_str([pl.col(c) for c in GEOGRAPHY_COLS]).alias("geo_id"),
        *[pl.col(code).alias(column) for code, column in renames.items()],
    )
