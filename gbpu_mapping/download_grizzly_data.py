"""
Fetch the two grizzly bear tables (mortality history, population estimates).

Every field is read as text; typing happens in the cleaning stages.
Network or parse errors propagate: there is no retry.
"""

import io
import logging

import pandas as pd
import requests

log = logging.getLogger(__name__)

headers = {
    "User-Agent": "gbpu-mapping (grizzly bear data walkthrough)"
}


def fetch_csv(url: str, timeout: float = 60) -> pd.DataFrame:
    log.info("Downloading %s", url)
    resp = requests.get(url, headers=headers, timeout=timeout)
    resp.raise_for_status()

    df = pd.read_csv(io.StringIO(resp.text), dtype=str, keep_default_na=True)
    log.info("  %s rows x %s columns", f"{len(df):,}", len(df.columns))
    return df


def load_tabular_sources(config):
    """Return (mortality_raw, population_raw) for a PipelineConfig."""
    mortality = fetch_csv(config.mortality_url, timeout=config.timeout)
    population = fetch_csv(config.population_url, timeout=config.timeout)
    return mortality, population
