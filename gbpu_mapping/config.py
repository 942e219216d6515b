"""
Run configuration for the GBPU density pipeline.

All defaults are literal constants: source URLs, the local spatial bundle,
column names, the version filter and the unused-column pattern.
Label corrections live in a small concordance CSV (from_name,to_name) so that
new label drift between the population table and the polygons only needs a
new row, not a code change.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

# ══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════

# Remote tabular sources (BC Data Catalogue downloads)
MORTALITY_URL = (
    "https://catalogue.data.gov.bc.ca/dataset/4bc13aa2-80c9-441b-8f46-0b9574109b93"
    "/resource/4abfb8b5-ba6b-4e2b-a5a5-0e8a6d2d6f8f/download/grizzly_bear_mortality_history.csv"
)
POPULATION_URL = (
    "https://catalogue.data.gov.bc.ca/dataset/2bf91935-9158-4f77-9c2c-4310480e6c29"
    "/resource/7a7713f9-bcbd-46b8-968a-03d343d367fb/download/grizzly_population_estimates_2012.csv"
)
HTTP_TIMEOUT = 60           # seconds per request

# Spatial bundle: downloaded by hand from the BC Geographic Warehouse
GBPU_ZIP    = Path("data/GBPU_BC_polygons.zip")
GBPU_LAYER  = "GBPU_BC_polygon"
GBPU_VERSION = 2012

# Column names
AGE_COL          = "AGE_CLASS"
MORTALITY_UNIT_COL = "GBPU_NAME"
NOTES_COL        = "Notes"
GBPU_COL         = "GBPU"
GBPU_NAME_COL    = "GBPU_NAME"
GBPU_VERS_COL    = "GBPU_VERS"

# Throwaway columns: blank headers read as "Unnamed: 7", or R-style "X7"
UNUSED_COL_PATTERN = r"^(Unnamed: \d+|X\d*)$"
N_META_ROWS = 5

NAME_CORRECTIONS_CSV = Path(__file__).parent / "data" / "gbpu_name_corrections.csv"

MISMATCH_POLICIES = ("raise", "drop")


# ══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════════════════════

def load_name_corrections(path) -> Dict[str, str]:
    """Read the label concordance (from_name -> to_name)."""
    con = pd.read_csv(path, dtype=str)

    required = {"from_name", "to_name"}
    missing = required - set(con.columns)
    if missing:
        raise ValueError(f"Missing columns in name corrections file {path}: {missing}")

    con = con.dropna(subset=["from_name", "to_name"])
    con["from_name"] = con["from_name"].str.strip()
    con["to_name"] = con["to_name"].str.strip()
    return dict(zip(con["from_name"], con["to_name"]))


@dataclass
class PipelineConfig:
    mortality_url: str = MORTALITY_URL
    population_url: str = POPULATION_URL
    timeout: float = HTTP_TIMEOUT
    gbpu_zip: Path = GBPU_ZIP
    layer: str = GBPU_LAYER
    version: int = GBPU_VERSION
    unused_pattern: str = UNUSED_COL_PATTERN
    n_meta_rows: int = N_META_ROWS
    name_corrections_csv: Path = NAME_CORRECTIONS_CSV
    name_corrections: Optional[Dict[str, str]] = field(default=None)
    on_mismatch: str = "raise"
    save_figure: Optional[Path] = None

    def __post_init__(self):
        if self.on_mismatch not in MISMATCH_POLICIES:
            raise ValueError(
                f"on_mismatch must be one of {MISMATCH_POLICIES}, got {self.on_mismatch!r}"
            )
        self.gbpu_zip = Path(self.gbpu_zip)
        self.name_corrections_csv = Path(self.name_corrections_csv)
        if self.save_figure is not None:
            self.save_figure = Path(self.save_figure)

    def corrections(self) -> Dict[str, str]:
        """Explicit mapping if one was passed, otherwise the concordance CSV."""
        if self.name_corrections is not None:
            return dict(self.name_corrections)
        return load_name_corrections(self.name_corrections_csv)
