"""
Argument standardization for metric input tables.

Every metric function passes each of its input tables through
`standardize_argument`, which checks the table against an `ArgumentSchema`
(a typed descriptor of accepted column kinds, legal values, patterns and
numeric ranges) using pandera, and returns either a clean copy, `None` for
"no data", or a `StandardizationFailure` describing what is wrong.

`ArgumentCollector` gathers the failures from all the tables of one metric
call so that they can be reported together.
"""
from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd
import pandera as pa
from pandera import Check, Column, DataFrameSchema

from .cleaning import cast_kinds, coerce_numeric, is_kind, normalize_columns
from ..config import CLASS, SITE, STATION, VALUE
from ..data_io import save_argument

logger = logging.getLogger(__name__)

_MAX_REPORTED_CASES = 5


class ValidationWarning(UserWarning):
    """Validation failure reported softly while running in unit-test mode."""


@dataclass(frozen=True)
class ColumnRule:
    """Accepted kinds and legal content of one column."""
    kinds: tuple[str, ...]
    legal: Optional[tuple] = None
    pattern: Optional[str] = None
    limits: Optional[tuple[float, float]] = None
    required: bool = True


@dataclass(frozen=True)
class ArgumentSchema:
    columns: dict[str, ColumnRule]
    coerce_numeric: tuple[str, ...] = ()

    def to_pandera(self) -> DataFrameSchema:
        return DataFrameSchema(
            {name: Column(checks=_checks_for(name, rule), nullable=True, required=rule.required)
             for name, rule in self.columns.items()},
            strict=False,
        )


@dataclass
class StandardizationFailure:
    name: str
    messages: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Argument {self.name}: " + "; ".join(self.messages)


def _checks_for(name: str, rule: ColumnRule) -> list[Check]:
    kinds = rule.kinds
    checks = [
        Check(lambda v: any(is_kind(v, k) for k in kinds), element_wise=True,
              name=f"kind_{'_or_'.join(kinds)}",
              error=f"{name} values must be of kind {' or '.join(kinds)}")
    ]
    if rule.legal is not None:
        legal = frozenset(v for v in rule.legal if not _is_null(v))
        checks.append(Check(lambda v: v in legal, element_wise=True, name="legal_values",
                            error=f"{name} values must be one of {sorted(map(str, legal))}"))
    if rule.pattern is not None:
        rx = re.compile(rule.pattern)
        checks.append(Check(lambda v: isinstance(v, str) and rx.fullmatch(v) is not None,
                            element_wise=True, name="legal_pattern",
                            error=f"{name} values must match {rule.pattern}"))
    if rule.limits is not None:
        lo, hi = rule.limits
        checks.append(Check(lambda v: not is_kind(v, "double") or lo <= v <= hi,
                            element_wise=True, name="range_limits",
                            error=f"{name} values must be within [{lo}, {hi}]"))
    return checks


def _is_null(v) -> bool:
    return v is None or (not isinstance(v, str) and pd.isna(v))


def _describe(err: pa.errors.SchemaErrors) -> list[str]:
    """Turn pandera's failure cases into one message per failing check."""
    cases = err.failure_cases
    messages = []
    for (column, check), grp in cases.groupby(["column", "check"], dropna=False, sort=False):
        values = grp["failure_case"].astype(str).unique().tolist()
        shown = ", ".join(values[:_MAX_REPORTED_CASES])
        if len(values) > _MAX_REPORTED_CASES:
            shown += f", ... ({len(values)} distinct)"
        if check == "column_in_dataframe":
            messages.append(f"missing required column(s): {shown}")
        else:
            label = "table" if _is_null(column) else f"column {column}"
            messages.append(f"{label}: {check} (found {shown})")
    return messages


def standardize_argument(
    df: Optional[pd.DataFrame],
    schema: ArgumentSchema,
    name: str,
    class_name: Optional[str] = None,
) -> Union[pd.DataFrame, StandardizationFailure, None]:
    """
    Validate and standardize one input table.

    Args:
        df: Input table (may be None)
        schema: Declared columns, kinds and legal contents
        name: Argument name used in messages
        class_name: If given, a `class` column with this value is added, so
            tables of single parameters can be stacked afterwards

    Returns:
        None if there is no data, a StandardizationFailure if the table is
        invalid, otherwise the standardized table restricted to the declared
        columns (plus `class`).
    """
    if df is None or not isinstance(df, pd.DataFrame) or df.shape[0] == 0:
        return None

    out = normalize_columns(df)
    out = cast_kinds(out, {col: rule.kinds for col, rule in schema.columns.items()})
    out = coerce_numeric(out, [c for c in schema.coerce_numeric if c in out.columns])

    try:
        schema.to_pandera().validate(out, lazy=True)
    except pa.errors.SchemaErrors as err:
        return StandardizationFailure(name, _describe(err))

    keep = [c for c in schema.columns if c in out.columns]
    out = out[keep].reset_index(drop=True)
    if class_name is not None:
        out[CLASS] = class_name
    return out


def observation_schema(
    legal: Optional[Sequence] = None,
    pattern: Optional[str] = None,
    limits: Optional[tuple[float, float]] = None,
    numeric: bool = False,
    with_station: bool = True,
) -> ArgumentSchema:
    """
    Schema of a long observation table: site, [station,] value.

    Categorical values are kept as character codes; numeric values are
    converted with NA-by-coercion.
    """
    columns = {SITE: ColumnRule(("integer", "character"))}
    if with_station:
        columns[STATION] = ColumnRule(("character",))
    if numeric:
        columns[VALUE] = ColumnRule(("integer", "double"), limits=limits)
    else:
        columns[VALUE] = ColumnRule(("character",),
                                    legal=tuple(legal) if legal is not None else None,
                                    pattern=pattern, limits=limits)
    return ArgumentSchema(columns, coerce_numeric=(VALUE,) if numeric else ())


class ArgumentCollector:
    """
    Standardizes all the arguments of one metric call and collects failures.

    Outside unit-test mode failures accumulate and `error_message()` returns
    them as one string. In unit-test mode each failure is issued as a
    ValidationWarning and the failing table is treated as absent.
    """

    def __init__(self, is_unit_test: bool = False,
                 arg_save_path: Optional[Union[str, Path]] = None):
        self.is_unit_test = is_unit_test
        self.arg_save_path = arg_save_path
        self.failures: list[StandardizationFailure] = []

    def standardize(self, df, schema: ArgumentSchema, name: str,
                    class_name: Optional[str] = None) -> Optional[pd.DataFrame]:
        result = standardize_argument(df, schema, name, class_name=class_name)
        if isinstance(result, StandardizationFailure):
            if self.is_unit_test:
                warnings.warn(str(result), ValidationWarning, stacklevel=2)
            else:
                self.failures.append(result)
            return None
        if result is not None and self.arg_save_path is not None:
            save_argument(result, name, self.arg_save_path)
        return result

    @property
    def ok(self) -> bool:
        return not self.failures

    def error_message(self) -> Optional[str]:
        if self.ok:
            return None
        msg = ". ".join(str(f) for f in self.failures)
        logger.warning("Argument validation failed: %s", msg)
        return msg
