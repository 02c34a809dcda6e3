"""
phabmet - Physical Habitat Metrics for national lake and stream surveys

This package turns long tables of physical habitat field observations (one
row per site, station and parameter) into site level metrics and condition
classes.

Subpackages:
- data_process: Input table standardization, reshaping and null-safe statistics
- habitat_metrics: Class/weight tables, drawdown reconciliation and metric families
- condition_assessment: Condition class assignment from site metrics
"""

# Import from subpackages for convenience
from .data_process import (
    ValidationWarning, normalized_cover, metrics_to_wide, wide_to_metrics,
    combine_metrics, protected_sum, protected_mean, quantile_type2,
)

from .habitat_metrics import (
    bottom_substrate, shoreline_substrate, human_influence, fish_cover,
    riparian_vegetation, bank_morphology, channel_habitat, invasive_species,
    littoral_depth, build_weight_table, configure_cover_weights,
    configure_proximity_weights, ReconcilerError,
)

from .condition_assessment import (
    NOT_ASSESSED, lookup_expected, assign_oe_condition, assign_threshold_condition,
)

from .pipeline import FAMILIES, compute_metrics, load_tables

__all__ = [
    # Data processing
    "ValidationWarning", "normalized_cover", "metrics_to_wide", "wide_to_metrics",
    "combine_metrics", "protected_sum", "protected_mean", "quantile_type2",

    # Metric families
    "bottom_substrate", "shoreline_substrate", "human_influence", "fish_cover",
    "riparian_vegetation", "bank_morphology", "channel_habitat", "invasive_species",
    "littoral_depth",

    # Lookup tables and drawdown
    "build_weight_table", "configure_cover_weights", "configure_proximity_weights",
    "ReconcilerError",

    # Condition assessment
    "NOT_ASSESSED", "lookup_expected", "assign_oe_condition", "assign_threshold_condition",

    # Pipeline
    "FAMILIES", "compute_metrics", "load_tables",
]

# Package metadata
__version__ = "0.1.0"
__author__ = "phabmet developers"
__description__ = "phabmet - Physical habitat metrics and condition indicators for aquatic surveys"
