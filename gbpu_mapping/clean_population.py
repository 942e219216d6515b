"""
Clean the grizzly bear population estimates.

The first rows of the Notes column describe the whole table (survey method,
year, caveats) rather than the row they sit on. They are pulled out into a
single "; "-joined string returned next to the cleaned table, and the column
is dropped.
"""

import logging
from typing import Tuple

import pandas as pd

from .helpers import drop_unused_columns, is_blank, require_columns

log = logging.getLogger(__name__)


def extract_population_meta(df: pd.DataFrame, notes_col: str = "Notes", n_rows: int = 5) -> str:
    require_columns(df, [notes_col], "Population table")
    notes = [str(x).strip() for x in df[notes_col].head(n_rows) if not is_blank(x)]
    return "; ".join(notes)


def clean_population(df: pd.DataFrame, unused_pattern: str,
                     notes_col: str = "Notes", n_rows: int = 5) -> Tuple[pd.DataFrame, str]:
    """Return (cleaned table, population_meta)."""
    df = drop_unused_columns(df, unused_pattern)

    population_meta = extract_population_meta(df, notes_col, n_rows)
    df = df.drop(columns=[notes_col])

    log.info("Population cleaned: %s rows, %d columns", f"{len(df):,}", len(df.columns))
    return df, population_meta
