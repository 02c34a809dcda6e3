"""
Centralized class definitions and weights used by the habitat metric families.

- COVER_WEIGHTS / COVER_PRESENCE map cover class codes to characteristic
  fractional covers and presence flags (substrate, fish cover, riparian
  vegetation).
- PROXIMITY_WEIGHTS / PROXIMITY_CIRCA / PROXIMITY_PRESENCE do the same for
  human influence proximity codes.
- SUBSTRATE_DIAMETERS gives the characteristic diameter (mm) of each substrate
  class as the geometric mean of its size range.

The metric functions take these tables as DataFrames (see `build_weight_table`)
so that a caller may override any of them for a single call, or reconfigure
the defaults at runtime with the `configure_*` functions.
"""
from __future__ import annotations
import math
import pandas as pd

from ..data_process.validators import ArgumentSchema, ColumnRule


def gmean(lo: float, hi: float) -> float:
    return math.sqrt(lo * hi)


# Cover class codes, shared by all the cover based families
COVER_WEIGHTS = {
    "0": 0.0,      # absent
    "1": 0.05,     # sparse, < 10%
    "2": 0.25,     # moderate, 10-40%
    "3": 0.575,    # heavy, 40-75%
    "4": 0.875,    # very heavy, > 75%
}
COVER_PRESENCE = {"0": False, "1": True, "2": True, "3": True, "4": True}

# Human influence proximity codes: 0 = not present, P = beyond the plot,
# C = within the plot
PROXIMITY_WEIGHTS = {"0": 0.0, "P": 0.5, "C": 1.0}
PROXIMITY_CIRCA = {"0": False, "P": False, "C": True}
PROXIMITY_PRESENCE = {"0": False, "P": True, "C": True}

SUBSTRATE_DIAMETERS = {
    "BEDROCK": gmean(4000, 8000),
    "BOULDERS": gmean(250, 4000),
    "COBBLE": gmean(64, 250),
    "GRAVEL": gmean(2, 64),
    "SAND": gmean(0.06, 2),
    "SILT": gmean(0.001, 0.06),
    "ORGANIC": float("nan"),
    "WOOD": float("nan"),
}
MINERAL_CLASSES = ("BEDROCK", "BOULDERS", "COBBLE", "GRAVEL", "SAND", "SILT")

HUMAN_INFLUENCE_CLASSES = (
    "BUILDINGS", "COMMERCIAL", "CROPS", "DOCKS", "LANDFILL", "LAWN", "ORCHARD",
    "OTHER", "PARK", "PASTURE", "POWERLINES", "ROADS", "WALLS",
)
AG_CLASSES = ("CROPS", "ORCHARD", "PASTURE")

FISH_COVER_CLASSES = (
    "AQUATIC", "BOULDERS", "BRUSH", "LEDGES", "LIVETREES", "OVERHANG", "SNAGS", "STRUCTURES",
)
RIPARIAN_VEGETATION_CLASSES = (
    "CANBIG", "CANSMALL", "UNDWOODY", "UNDNONW", "GNDWOODY", "GNDNONW", "GNDBARE", "GNDINUNDATED",
)

# Channel unit codes -> (is_fast, is_slow, is_pool)
CHANNEL_UNITS = {
    "FA": (True, False, False),   # falls
    "CA": (True, False, False),   # cascade
    "RA": (True, False, False),   # rapid
    "RI": (True, False, False),   # riffle
    "GL": (False, True, False),   # glide
    "PB": (False, True, True),    # plunge pool
    "PP": (False, True, True),    # pool (dammed)
    "PD": (False, True, True),    # pool (lateral scour)
    "PL": (False, True, True),    # pool (trench)
    "PT": (False, True, True),    # pool (other)
    "P": (False, True, True),     # pool (unspecified)
    "DR": (False, False, False),  # dry channel
    "SB": (False, False, False),  # subsurface flow
}

BANK_ANGLE_CLASSES = {"0-5": "low", "5-30": "med", "30-75": "stp", "75-100": "vst"}


def configure_cover_weights(new_weights: dict, *, presence: dict | None = None,
                            replace: bool = False) -> None:
    """Configure COVER_WEIGHTS (and optionally COVER_PRESENCE) at runtime.

    - replace=False (default): updates existing entries with provided keys.
    - replace=True: replaces the mappings entirely with the provided ones.
    """
    global COVER_WEIGHTS, COVER_PRESENCE
    if replace:
        COVER_WEIGHTS = dict(new_weights)
        if presence is not None:
            COVER_PRESENCE = dict(presence)
    else:
        COVER_WEIGHTS.update(dict(new_weights))
        if presence is not None:
            COVER_PRESENCE.update(dict(presence))


def configure_proximity_weights(new_weights: dict, *, replace: bool = False) -> None:
    """Configure PROXIMITY_WEIGHTS at runtime, as `configure_cover_weights` does."""
    global PROXIMITY_WEIGHTS
    if replace:
        PROXIMITY_WEIGHTS = dict(new_weights)
    else:
        PROXIMITY_WEIGHTS.update(dict(new_weights))


def get_class_weight(code: str, *, kind: str = "cover", weights: dict | None = None,
                     default: float = float("nan")) -> float:
    """Return the characteristic weight of a class code.

    Precedence (highest to lowest):
    1) weights[code] if provided
    2) the module level table for `kind` ('cover' or 'proximity')
    3) default
    """
    if weights is not None and code in weights:
        return float(weights[code])
    table = _tables(kind)[0]
    return float(table.get(code, default))


def build_weight_table(kind: str = "cover", *, weights: dict | None = None) -> pd.DataFrame:
    """Build the lookup DataFrame for `kind` from the configured defaults.

    Columns are value, weights, presence and, for proximity, in_stream.
    `weights` overrides individual class weights.

    Usage examples:
    - build_weight_table("cover")
    - build_weight_table("proximity", weights={"P": 0.25})
    """
    table, presence, circa = _tables(kind)
    codes = list(table)
    out = pd.DataFrame({
        "value": codes,
        "weights": [get_class_weight(c, kind=kind, weights=weights) for c in codes],
        "presence": [presence.get(c) for c in codes],
    })
    if circa is not None:
        out["in_stream"] = [circa.get(c) for c in codes]
    return out


def _tables(kind: str):
    if kind == "cover":
        return COVER_WEIGHTS, COVER_PRESENCE, None
    if kind == "proximity":
        return PROXIMITY_WEIGHTS, PROXIMITY_PRESENCE, PROXIMITY_CIRCA
    raise ValueError(f"Unknown weight table kind: {kind}")


def substrate_class_table() -> pd.DataFrame:
    """Substrate classes with characteristic diameter and population flag."""
    names = list(SUBSTRATE_DIAMETERS)
    return pd.DataFrame({
        "name": names,
        "characteristic_diameter": [SUBSTRATE_DIAMETERS[n] for n in names],
        "in_population_estimate": [n in MINERAL_CLASSES for n in names],
    })


def channel_unit_table() -> pd.DataFrame:
    codes = list(CHANNEL_UNITS)
    return pd.DataFrame({
        "value": codes,
        "is_fast": [CHANNEL_UNITS[c][0] for c in codes],
        "is_slow": [CHANNEL_UNITS[c][1] for c in codes],
        "is_pool": [CHANNEL_UNITS[c][2] for c in codes],
    })


# Schemas of the lookup tables themselves, so caller supplied overrides are
# checked with the same machinery as observations.
COVER_TABLE_SCHEMA = ArgumentSchema({
    "value": ColumnRule(("character",)),
    "weights": ColumnRule(("double",), limits=(0, 1)),
    "presence": ColumnRule(("logical",), legal=(False, True)),
}, coerce_numeric=("weights",))

PROXIMITY_TABLE_SCHEMA = ArgumentSchema({
    "value": ColumnRule(("character",)),
    "weights": ColumnRule(("double",), limits=(0, 1)),
    "presence": ColumnRule(("logical",), legal=(False, True)),
    "in_stream": ColumnRule(("logical",), legal=(False, True)),
}, coerce_numeric=("weights",))

SUBSTRATE_TABLE_SCHEMA = ArgumentSchema({
    "name": ColumnRule(("character",), legal=tuple(SUBSTRATE_DIAMETERS) + ("OTHER",)),
    "characteristic_diameter": ColumnRule(("double",)),
    "in_population_estimate": ColumnRule(("logical",), legal=(False, True)),
}, coerce_numeric=("characteristic_diameter",))
