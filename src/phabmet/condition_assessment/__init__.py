"""
Condition class assignment for phabmet.

Consumes wide site tables of metrics and covariates and assigns ordered
condition classes by observed/expected ratio or by fixed cut points.
"""

from .condition_class import (
    NOT_ASSESSED,
    lookup_expected,
    assign_oe_condition,
    assign_threshold_condition,
)

__all__ = [
    "NOT_ASSESSED",
    "lookup_expected",
    "assign_oe_condition",
    "assign_threshold_condition",
]
