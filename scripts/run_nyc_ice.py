#!/usr/bin/env python
"""
Example script for computing NYC tract ICE indices.

This script demonstrates how to:
1. Load a run configuration
2. Fetch ACS raw counts (or read a cached raw counts CSV)
3. Compute and validate the indices
4. Save the results for GIS re-joining
"""

import sys
from pathlib import Path

from segflow.core.schema import load_run_config
from segflow.runner import run_ice


def main(config_path: str = "configs/nyc_ice_2019.yaml") -> None:
    """Main execution function."""
    print("=" * 60)
    print("NYC Tract ICE Runner")
    print("=" * 60)

    print(f"\n1. Loading run configuration from {config_path}")
    config = load_run_config(config_path)
    print(f"   Dataset: {config.dataset_name}")
    print(f"   ACS: {config.acs.survey} {config.acs.year}, state {config.acs.state}")
    print(f"   Counties: {', '.join(config.acs.counties)}")

    if config.raw_counts_path:
        print(f"\n2. Reading cached raw counts from {config.raw_counts_path}")
    else:
        print("\n2. Fetching raw counts from the Census Data API...")

    result = run_ice(config)

    print("\n3. Computed indices")
    print("   " + result.batch.summary().replace("\n", "\n   "))
    print("   " + result.report.summary().replace("\n", "\n   "))

    print(f"\n4. Saved indices to {Path(result.output_path)}")
    if result.incident_counts is not None:
        print(f"   Incident count rows: {len(result.incident_counts)}")

    print("\n" + "=" * 60)
    print("Script execution complete")
    print("=" * 60)


if __name__ == "__main__":
    main(*sys.argv[1:2])
