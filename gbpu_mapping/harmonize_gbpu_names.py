"""
Align GBPU labels between the population aggregate and the polygons.

The two datasets are maintained separately and their unit names drift
("Central Purcells" vs "Central-South Purcells"). Labels are compared as sets
(trimmed, missing excluded), corrected with an explicit concordance, and
compared again. There is no fuzzy matching: a new mismatch needs a new row in
the concordance file.
"""

import logging
from typing import Dict, Iterable, Set, Tuple

import geopandas as gpd
import pandas as pd

from .aggregate_gbpu import aggregate_by_gbpu
from .helpers import is_blank, require_columns

log = logging.getLogger(__name__)


class LabelMismatchError(ValueError):
    """Label sets still differ after corrections."""

    def __init__(self, only_in_table, only_in_spatial):
        self.only_in_table = set(only_in_table)
        self.only_in_spatial = set(only_in_spatial)
        super().__init__(
            "GBPU labels do not match after corrections. "
            f"Only in population table: {sorted(self.only_in_table)}; "
            f"only in polygons: {sorted(self.only_in_spatial)}"
        )


# ══════════════════════════════════════════════════════════════════════════════
# LABEL SETS
# ══════════════════════════════════════════════════════════════════════════════

def normalize_labels(values: Iterable) -> Set[str]:
    return {str(v).strip() for v in values if not is_blank(v)}


def label_mismatches(table_labels: Iterable, spatial_labels: Iterable) -> Tuple[Set[str], Set[str]]:
    """The two halves of the symmetric difference: (only in table, only in polygons)."""
    table = normalize_labels(table_labels)
    spatial = normalize_labels(spatial_labels)
    return table - spatial, spatial - table


def apply_name_corrections(df: pd.DataFrame, corrections: Dict[str, str], col: str = "GBPU") -> pd.DataFrame:
    require_columns(df, [col], "GBPU table")
    df = df.copy()

    stripped = _strip_labels(df[col])
    df[col] = stripped.map(lambda x: corrections.get(x, x))

    for old, new in corrections.items():
        if (stripped == old).any():
            log.info("  %s → %s", old, new)
    return df


def _strip_labels(s: pd.Series) -> pd.Series:
    return s.where(s.isna(), s.astype(str).str.strip())


# ══════════════════════════════════════════════════════════════════════════════
# RECONCILE
# ══════════════════════════════════════════════════════════════════════════════

def reconcile_gbpu_names(aggregate: pd.DataFrame, polygons: gpd.GeoDataFrame,
                         corrections: Dict[str, str], on_mismatch: str = "raise",
                         table_col: str = "GBPU", spatial_col: str = "GBPU_NAME") -> pd.DataFrame:
    """
    Correct aggregate labels so they match the polygon labels.

    on_mismatch="raise" raises LabelMismatchError if the sets still differ;
    on_mismatch="drop" warns and drops aggregate rows with no polygon.
    A correction onto a label already in the table merges the two rows, and
    the sums and density are recomputed so each unit stays a single row.
    """
    require_columns(polygons, [spatial_col], "GBPU polygons")

    only_table, only_spatial = label_mismatches(aggregate[table_col], polygons[spatial_col])
    if only_table or only_spatial:
        log.info("Label mismatch before corrections: table-only %s, polygon-only %s",
                 sorted(only_table), sorted(only_spatial))

    fixed = apply_name_corrections(aggregate, corrections, table_col)
    merged_units = fixed[table_col].dropna().duplicated()
    if merged_units.any():
        log.info("Corrections merged %d row(s) into existing units; re-aggregating", int(merged_units.sum()))
        fixed = aggregate_by_gbpu(fixed, table_col)

    only_table, only_spatial = label_mismatches(fixed[table_col], polygons[spatial_col])
    if not (only_table or only_spatial):
        log.info("GBPU labels aligned (%d units)", len(normalize_labels(fixed[table_col])))
        return fixed

    if on_mismatch == "drop":
        log.warning("Dropping %d unmatched table label(s): %s; %d polygon(s) without data: %s",
                    len(only_table), sorted(only_table), len(only_spatial), sorted(only_spatial))
        return fixed.loc[~fixed[table_col].isin(only_table)].reset_index(drop=True)

    raise LabelMismatchError(only_table, only_spatial)
