"""
Aggregate population estimates to Grizzly Bear Population Units.

Density = sum(Estimate) / sum(Total_Area) * 1000 (bears per 1000 km2).
Missing numbers count as zero in the sums. A unit with zero total area gets a
non-finite density; nothing guards against it.
"""

import logging

import numpy as np
import pandas as pd

from .helpers import require_columns

log = logging.getLogger(__name__)

VALUE_COLS = ["Estimate", "Total_Area"]


def aggregate_by_gbpu(df: pd.DataFrame, group_col: str = "GBPU") -> pd.DataFrame:
    require_columns(df, [group_col] + VALUE_COLS, "Population table")

    df = df[[group_col] + VALUE_COLS].copy()
    for col in VALUE_COLS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    agg = (
        df.groupby(group_col, dropna=False, sort=True)[VALUE_COLS]
          .sum(min_count=0)
          .reset_index()
    )

    with np.errstate(divide="ignore", invalid="ignore"):
        agg["Density"] = agg["Estimate"] / agg["Total_Area"] * 1000

    n_inf = int((~np.isfinite(agg["Density"])).sum())
    if n_inf:
        log.warning("%d unit(s) with non-finite density (zero total area)", n_inf)

    log.info("Aggregated %s rows into %d units", f"{len(df):,}", len(agg))
    return agg
