"""
Simple usage example for the physical habitat metrics package.

This script builds a small lake survey in long format, computes several
metric families through the pipeline, reshapes the result to one row per
site and assigns a condition class from littoral depth.
"""

import logging
import pandas as pd

from phabmet import (
    assign_threshold_condition, compute_metrics, metrics_to_wide, human_influence,
)


def station_table(site, values):
    """Observations for one site, one value per station (A, B, C, ...)."""
    return pd.DataFrame({
        "SITE": [site] * len(values),
        "STATION": [chr(ord("A") + i) for i in range(len(values))],
        "VALUE": values,
    })


def both_sites(lake1, lake2):
    return pd.concat([station_table("LAKE-1", lake1), station_table("LAKE-2", lake2)],
                     ignore_index=True)


def create_example_survey():
    """Two lakes with four stations each."""
    return {
        # bottom substrate cover classes 0-4
        "sand": both_sites(["2", "3", "4", "1"], ["0", "1", None, "0"]),
        "silt": both_sites(["1", "0", "0", "2"], ["4", "4", "3", "4"]),
        "gravel": both_sites(["0", "1", "0", "0"], ["1", "0", "0", "0"]),
        "bottom_substrate.color": both_sites(["BROWN", "BROWN", "GRAY", None],
                                             ["BLACK", "BLACK", "BROWN", "BLACK"]),
        "odor": both_sites(["NONE", "NONE", "NONE", "NONE"], ["H2S", "NONE", "H2S", None]),
        # human influence proximity classes 0/P/C
        "buildings": both_sites(["0", "P", "C", "0"], ["C", "C", "P", "C"]),
        "docks": both_sites(["0", "0", "P", "0"], ["C", "P", "C", "C"]),
        "buildings_dd": both_sites([None, "0", "C", None], ["P", None, "C", "C"]),
        "drawdown": both_sites(["N", "Y", "Y", "N"], ["Y", "Y", "Y", "Y"]),
        "horizontal_distance_dd": both_sites([None, "1.0", "6", None], ["12", "1.2", "20", "8"]),
        # littoral depth in m, one value per station
        "depth": both_sites([0.4, 0.6, 1.1, 0.5], [0.2, 0.3, None, 0.25]).drop(columns="STATION"),
    }


def simple_usage_example():
    print("=== Physical Habitat Metrics - Usage Example ===\n")

    print("1. Building example survey tables...")
    tables = create_example_survey()
    print(f"   {len(tables)} parameter tables")

    print("\n2. Computing metric families...")
    metrics, errors = compute_metrics(
        tables, families=["bottom_substrate", "human_influence", "littoral_depth"])
    print(f"   {metrics['metric'].nunique()} metrics for {metrics['site'].nunique()} sites")
    for family, message in errors.items():
        print(f"   {family} rejected its input: {message}")

    print("\n3. Selected metrics, one row per site:")
    wide = metrics_to_wide(metrics, metrics=["BSFCSAND", "BSOFCLASS", "HIIALL_SYN", "xlit"])
    print(wide.to_string())

    print("\n4. Condition class from mean littoral depth:")
    site_table = wide.reset_index()
    condition = assign_threshold_condition(site_table, metric="xlit", thresholds=(0.3, 0.5))
    print(condition.to_string(index=False))

    print("\n5. Calling one family directly with custom settings:")
    hi = human_influence(buildings=tables["buildings"], docks=tables["docks"], data_2007=True)
    print(hi[hi["metric"].str.startswith("HIPW")].to_string(index=False))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    simple_usage_example()
