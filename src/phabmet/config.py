from __future__ import annotations
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
INTERIM = DATA / "interim"

# canonical column names of observation and metric tables
SITE = "site"
STATION = "station"
CLASS = "class"
VALUE = "value"
METRIC = "metric"

KEYS = [SITE, STATION]  # shared keys for station-level joins
METRIC_COLUMNS = [SITE, METRIC, VALUE]

# drawdown handling
MAX_DRAWDOWN_DIST = 1.5      # stations with a narrower drawdown zone reuse riparian values
SYNTHETIC_PLOT_DEPTH = 15.0  # depth of the riparian plot measured from the waterline, in m
DEFAULT_FILLIN_VALUE = "0"
DEFAULT_FILLIN_HORIZ_DIST = "0"

# zone suffixes
RIPARIAN = "_RIP"
DRAWDOWN = "_DD"
SYNTHETIC = "_SYN"

EPSILON = 1e-15
