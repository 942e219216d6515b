"""
Grizzly bear mortality / population → GBPU density map.

Process:
  1. Download mortality history and population estimates (all text)
  2. Clean mortality: drop throwaway columns, AGE_CLASS → minimum_age / maximum_age
  3. Clean population: drop throwaway columns, pull Notes into population_meta
  4. Aggregate population to GBPU: Estimate, Total_Area, Density
  5. Load GBPU polygons from the local zip, keep version 2012
  6. Correct GBPU labels so the table matches the polygons
  7. Fortify polygons, join density, draw the choropleth

The spatial bundle must be downloaded by hand first (see --gbpu-zip).
Nothing is written unless --save-figure is given.
"""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd

from . import config as cfg
from .aggregate_gbpu import aggregate_by_gbpu
from .clean_mortality import clean_mortality, count_mortalities_by_unit
from .clean_population import clean_population
from .download_grizzly_data import load_tabular_sources
from .harmonize_gbpu_names import label_mismatches, reconcile_gbpu_names
from .load_gbpu_polygons import load_gbpu_polygons
from .map_gbpu_density import render_density_map

log = logging.getLogger("gbpu_mapping")


# ══════════════════════════════════════════════════════════════════════════════
# PIPELINE
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class PipelineResult:
    mortality: pd.DataFrame
    population: pd.DataFrame
    population_meta: str
    aggregate: pd.DataFrame
    polygons: gpd.GeoDataFrame
    merged: pd.DataFrame
    figure: plt.Figure
    mortality_by_unit: Optional[pd.DataFrame] = None


def run(config: cfg.PipelineConfig) -> PipelineResult:
    mortality_raw, population_raw = load_tabular_sources(config)

    mortality = clean_mortality(mortality_raw, config.unused_pattern, cfg.AGE_COL)
    mortality_by_unit = None
    if cfg.MORTALITY_UNIT_COL in mortality.columns:
        mortality_by_unit = count_mortalities_by_unit(mortality, cfg.MORTALITY_UNIT_COL)
    else:
        log.warning("No %s column in mortality table; skipping per-unit counts", cfg.MORTALITY_UNIT_COL)

    population, population_meta = clean_population(
        population_raw, config.unused_pattern, cfg.NOTES_COL, config.n_meta_rows
    )
    aggregate = aggregate_by_gbpu(population, cfg.GBPU_COL)

    polygons = load_gbpu_polygons(config.gbpu_zip, config.layer, config.version, cfg.GBPU_VERS_COL)

    aggregate = reconcile_gbpu_names(
        aggregate, polygons, config.corrections(), config.on_mismatch,
        table_col=cfg.GBPU_COL, spatial_col=cfg.GBPU_NAME_COL,
    )

    merged, figure = render_density_map(polygons, aggregate, id_col=cfg.GBPU_NAME_COL, key=cfg.GBPU_COL)

    return PipelineResult(
        mortality=mortality,
        population=population,
        population_meta=population_meta,
        aggregate=aggregate,
        polygons=polygons,
        merged=merged,
        figure=figure,
        mortality_by_unit=mortality_by_unit,
    )


# ══════════════════════════════════════════════════════════════════════════════
# COMMAND LINE
# ══════════════════════════════════════════════════════════════════════════════

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gbpu-map",
        description="Map grizzly bear density by Grizzly Bear Population Unit.",
    )
    p.add_argument("--mortality-url", default=cfg.MORTALITY_URL)
    p.add_argument("--population-url", default=cfg.POPULATION_URL)
    p.add_argument("--timeout", type=float, default=cfg.HTTP_TIMEOUT, help="HTTP timeout in seconds")
    p.add_argument("--gbpu-zip", type=Path, default=cfg.GBPU_ZIP,
                   help="Manually downloaded GBPU polygon bundle (zip)")
    p.add_argument("--layer", default=cfg.GBPU_LAYER)
    p.add_argument("--version", type=int, default=cfg.GBPU_VERSION, help="GBPU_VERS to keep")
    p.add_argument("--name-corrections", type=Path, default=cfg.NAME_CORRECTIONS_CSV,
                   help="CSV with from_name,to_name label corrections")
    p.add_argument("--on-mismatch", choices=cfg.MISMATCH_POLICIES, default="raise",
                   help="What to do if labels still differ after corrections")
    p.add_argument("--save-figure", type=Path, default=None, help="Write the map to this path")
    p.add_argument("--show", action="store_true", help="Open the map in a window")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> cfg.PipelineConfig:
    return cfg.PipelineConfig(
        mortality_url=args.mortality_url,
        population_url=args.population_url,
        timeout=args.timeout,
        gbpu_zip=args.gbpu_zip,
        layer=args.layer,
        version=args.version,
        name_corrections_csv=args.name_corrections,
        on_mismatch=args.on_mismatch,
        save_figure=args.save_figure,
    )


def print_summary(result: PipelineResult, config: cfg.PipelineConfig):
    only_table, only_spatial = label_mismatches(
        result.aggregate[cfg.GBPU_COL], result.polygons[cfg.GBPU_NAME_COL]
    )
    dens = result.aggregate["Density"]

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Mortality records:   {len(result.mortality):,}")
    print(f"  with minimum_age:  {result.mortality['minimum_age'].notna().sum():,}")
    print(f"  with maximum_age:  {result.mortality['maximum_age'].notna().sum():,}")
    print(f"Population rows:     {len(result.population):,}")
    print(f"GBPUs (table):       {len(result.aggregate):,}")
    print(f"GBPUs (polygons):    {len(result.polygons):,} (version {config.version})")
    print(f"Density range:       {dens.min():.2f} – {dens.max():.2f} bears / 1000 km²")
    print(f"Unmatched labels:    table {sorted(only_table)}, polygons {sorted(only_spatial)}")

    if result.mortality_by_unit is not None:
        print("\nMost mortalities by unit:")
        for _, row in result.mortality_by_unit.head(5).iterrows():
            print(f"  {str(row.iloc[0]):30s} {int(row['n_mortalities']):6,}")

    print(f"\nPopulation notes:\n  {result.population_meta or '(none)'}")

    if config.save_figure is not None:
        print(f"\nMap: {config.save_figure}")
    print("=" * 70)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    config = config_from_args(args)

    print("=" * 70)
    print("GRIZZLY BEAR DENSITY BY GBPU")
    print("=" * 70)

    result = run(config)

    if config.save_figure is not None:
        config.save_figure.parent.mkdir(parents=True, exist_ok=True)
        result.figure.savefig(config.save_figure, dpi=300, bbox_inches="tight")
        log.info("✓ Saved: %s", config.save_figure)

    print_summary(result, config)

    if args.show:
        plt.show()
    return result


if __name__ == "__main__":
    main()
