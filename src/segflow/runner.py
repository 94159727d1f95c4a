"""End-to-end run: raw counts -> indices -> validation -> CSV export."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import polars as pl

from segflow.core.indices import IndexBatch, compute_index_frame
from segflow.core.output import CsvOutputAdapter, write_raw_counts_csv
from segflow.core.schema import RunConfig, TractMetadata
from segflow.core.tract_frame import TractFrame
from segflow.core.utils import get_logger
from segflow.core.validation import ValidationReport, validate_tract_indices
from segflow.datasets.acs.client import AcsClient
from segflow.datasets.acs.mapping import load_raw_counts_csv
from segflow.datasets.nyc_shootings.mapping import count_incidents, load_nyc_shootings

logger = get_logger(__name__)


@dataclass
class RunResult:
    """Artefacts produced by a run."""

    indices: TractFrame
    batch: IndexBatch
    report: ValidationReport
    output_path: Path
    incident_counts: pl.DataFrame | None = None


def load_raw_counts(config: RunConfig, client: AcsClient | None = None) -> TractFrame:
    """
    Read raw counts from disk when configured, otherwise fetch them from the API.

    Args:
        config: Run configuration
        client: Optional client; built from config.acs when omitted

    Returns:
        TractFrame of cleaned raw counts
    """
    acs = config.acs

    if config.raw_counts_path:
        metadata = TractMetadata(
            dataset_name=config.dataset_name,
            vintage=acs.year,
            survey=acs.survey,
            state_fips=acs.state,
            county_fips=list(acs.counties),
        )
        return load_raw_counts_csv(config.raw_counts_path, metadata=metadata)

    client = client or AcsClient.from_config(acs)
    raw = client.fetch_tracts(acs.state, acs.counties, dataset_name=config.dataset_name)

    if config.raw_output_path:
        write_raw_counts_csv(raw, config.raw_output_path)

    return raw


def run_ice(config: RunConfig, client: AcsClient | None = None) -> RunResult:
    """
    Run the full computation described by a RunConfig.

    Tract-level failures are reported in the batch accounting and never stop
    the run; shape errors in the raw table do.

    Args:
        config: Run configuration
        client: Optional ACS client (used when raw counts are fetched)

    Returns:
        RunResult with the indices, accounting, validation report and paths
    """
    logger.info("Starting ICE run for dataset '%s'", config.dataset_name)

    raw = load_raw_counts(config, client=client)
    indices, batch = compute_index_frame(raw)
    report = validate_tract_indices(batch.indices)

    adapter = CsvOutputAdapter(
        flag_anomalies=config.output.flag_anomalies,
        write_metadata=config.output.write_metadata,
    )
    output_path = adapter.write(indices, config.output.path, batch=batch)

    incident_counts = None
    if config.shootings is not None:
        incidents = load_nyc_shootings(config.shootings.path)
        incident_counts = count_incidents(incidents, group_by=config.shootings.group_by)
        if config.shootings.output_path:
            out = Path(config.shootings.output_path)
            out.parent.mkdir(parents=True, exist_ok=True)
            incident_counts.write_csv(out)
            logger.info("Wrote incident counts to %s", out)

    logger.info("ICE run completed successfully")
    return RunResult(
        indices=indices,
        batch=batch,
        report=report,
        output_path=output_path,
        incident_counts=incident_counts,
    )
