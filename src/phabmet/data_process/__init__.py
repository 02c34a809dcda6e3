"""
Data processing utilities for phabmet.

This subpackage contains input table standardization, reshaping helpers and
the null-safe statistics shared by all metric families.
"""

from .cleaning import *
from .dataframe_ops import *
from .transform import *
from .validators import (
    ArgumentCollector, ArgumentSchema, ColumnRule, StandardizationFailure,
    ValidationWarning, observation_schema, standardize_argument,
)

__all__ = [
    # Standardization
    "ArgumentCollector", "ArgumentSchema", "ColumnRule", "StandardizationFailure",
    "ValidationWarning", "observation_schema", "standardize_argument",
    "normalize_columns", "cast_kinds", "coerce_numeric",

    # DataFrame operations
    "stack_classes", "combine_metrics", "expand_metric_grid", "metrics_to_wide",
    "wide_to_metrics", "flatten_columns", "assert_unique_metrics", "coverage_report",

    # Statistics and cover normalization
    "protected_sum", "protected_mean", "sample_sd", "count_valid",
    "quantile_type2", "iqr_type2", "normalized_cover", "summarise_by_class",
    "weighted_log_diameter", "population_estimates", "modal_classes",
]
