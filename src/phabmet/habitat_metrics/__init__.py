"""
Physical habitat metric families for phabmet.

This subpackage contains the class/weight lookup tables, the drawdown zone
reconciler and one module per metric family. Every family function takes
observation tables as keyword arguments and returns a long metric table
(site, metric, value) or an error message.
"""

from .class_weights import (
    COVER_WEIGHTS,
    COVER_PRESENCE,
    PROXIMITY_WEIGHTS,
    SUBSTRATE_DIAMETERS,
    configure_cover_weights,
    configure_proximity_weights,
    get_class_weight,
    build_weight_table,
    substrate_class_table,
    channel_unit_table,
)

from .drawdown import (
    ReconcilerError,
    split_zone_suffix,
    fillin_dd_with_riparian_values,
    fillin_absent_missing_with_default,
    calc_syn_influence,
    calc_syn_covers,
    reconcile_drawdown,
)

from .substrate import bottom_substrate, shoreline_substrate
from .human_influence import human_influence
from .fish_cover import fish_cover
from .riparian_vegetation import riparian_vegetation
from .bank_morphology import bank_morphology
from .channel_habitat import channel_habitat
from .invasive_species import invasive_species
from .littoral_depth import littoral_depth

__all__ = [
    # Lookup tables
    "COVER_WEIGHTS",
    "COVER_PRESENCE",
    "PROXIMITY_WEIGHTS",
    "SUBSTRATE_DIAMETERS",
    "configure_cover_weights",
    "configure_proximity_weights",
    "get_class_weight",
    "build_weight_table",
    "substrate_class_table",
    "channel_unit_table",

    # Drawdown reconciliation
    "ReconcilerError",
    "split_zone_suffix",
    "fillin_dd_with_riparian_values",
    "fillin_absent_missing_with_default",
    "calc_syn_influence",
    "calc_syn_covers",
    "reconcile_drawdown",

    # Metric families
    "bottom_substrate",
    "shoreline_substrate",
    "human_influence",
    "fish_cover",
    "riparian_vegetation",
    "bank_morphology",
    "channel_habitat",
    "invasive_species",
    "littoral_depth",
]
