"""
Clean the grizzly bear mortality history.

  1. Drop throwaway columns (blank headers)
  2. Split AGE_CLASS ("5-10", "0-2-3", "10", "5+") on the first "-" into
     minimum_age / maximum_age; extra dashes stay with maximum_age
  3. Parse both halves into numbers, keeping a parse status per value:
       parsed    - a number was found ("5+" -> 5)
       missing   - nothing to parse (no "-" for maximum_age, empty string)
       malformed - text with no number in it ("Unknown")
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .helpers import drop_unused_columns, first_number, is_blank, require_columns

log = logging.getLogger(__name__)

PARSED = "parsed"
MISSING = "missing"
MALFORMED = "malformed"

AGE_FIELDS = ("minimum_age", "maximum_age")


# ══════════════════════════════════════════════════════════════════════════════
# AGE PARSING
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AgeParse:
    status: str
    value: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == PARSED


def parse_age(s) -> AgeParse:
    """Parse one half of an age class. Never raises."""
    if is_blank(s):
        return AgeParse(MISSING)
    value = first_number(s)
    if value is None:
        return AgeParse(MALFORMED)
    return AgeParse(PARSED, value)


def split_on_first_dash(s):
    if is_blank(s):
        return None, None
    left, sep, right = str(s).partition("-")
    return left.strip(), (right.strip() if sep else None)


def split_age_class(series: pd.Series) -> pd.DataFrame:
    """Raw text halves of AGE_CLASS, split on the first "-" only."""
    parts = [split_on_first_dash(s) for s in series]
    return pd.DataFrame(parts, index=series.index, columns=list(AGE_FIELDS), dtype=object)


def parse_age_class(series: pd.Series) -> pd.DataFrame:
    """
    Split and parse AGE_CLASS.

    Returns minimum_age, maximum_age (float, NaN unless parsed) and
    minimum_age_status, maximum_age_status.
    """
    halves = split_age_class(series)
    out = pd.DataFrame(index=series.index)
    for col in AGE_FIELDS:
        parsed = halves[col].map(parse_age)
        out[col] = [p.value if p.ok else np.nan for p in parsed]
        out[col] = out[col].astype(float)
        out[f"{col}_status"] = [p.status for p in parsed]
    return out


# ══════════════════════════════════════════════════════════════════════════════
# CLEANING
# ══════════════════════════════════════════════════════════════════════════════

def clean_mortality(df: pd.DataFrame, unused_pattern: str, age_col: str = "AGE_CLASS") -> pd.DataFrame:
    require_columns(df, [age_col], "Mortality table")

    df = drop_unused_columns(df, unused_pattern)
    ages = parse_age_class(df[age_col])

    for col in AGE_FIELDS:
        n_bad = int((ages[f"{col}_status"] == MALFORMED).sum())
        if n_bad:
            bad = df.loc[ages[f"{col}_status"] == MALFORMED, age_col].unique().tolist()
            log.warning("%s: %d malformed value(s) set to missing, e.g. %s", col, n_bad, bad[:5])

    # minimum_age / maximum_age take the place of AGE_CLASS
    pos = df.columns.get_loc(age_col)
    df = df.drop(columns=[age_col])
    df.insert(pos, "minimum_age", ages["minimum_age"])
    df.insert(pos + 1, "maximum_age", ages["maximum_age"])

    log.info("Mortality cleaned: %s rows, minimum_age parsed for %s",
             f"{len(df):,}", f"{df['minimum_age'].notna().sum():,}")
    return df


# ══════════════════════════════════════════════════════════════════════════════
# SUMMARIES
# ══════════════════════════════════════════════════════════════════════════════

def count_mortalities_by_unit(df: pd.DataFrame, unit_col: str = "GBPU_NAME") -> pd.DataFrame:
    """Records per unit with mean minimum age, largest first."""
    require_columns(df, [unit_col, "minimum_age"], "Mortality table")
    out = (
        df.groupby(unit_col, dropna=False)
          .agg(n_mortalities=("minimum_age", "size"), mean_minimum_age=("minimum_age", "mean"))
          .reset_index()
          .sort_values(["n_mortalities", unit_col], ascending=[False, True])
          .reset_index(drop=True)
    )
    return out
