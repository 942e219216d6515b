"""Small helpers shared by the cleaning stages."""

import logging
import re

import pandas as pd

log = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def require_columns(df: pd.DataFrame, columns, what: str = "table"):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{what} is missing column(s) {missing}. Columns: {list(df.columns)}")


def drop_unused_columns(df: pd.DataFrame, pattern: str) -> pd.DataFrame:
    """Drop every column whose name matches `pattern` (re.search)."""
    rx = re.compile(pattern)
    unused = [c for c in df.columns if rx.search(str(c))]
    if unused:
        log.info("Dropping %d unused column(s): %s", len(unused), unused)
    return df.drop(columns=unused)


def is_blank(x) -> bool:
    return pd.isna(x) or str(x).strip() == ""


def first_number(s: str):
    """First number in a string ("5+" -> 5.0), or None."""
    match = NUMBER_RE.search(str(s))
    return float(match.group(0)) if match else None
