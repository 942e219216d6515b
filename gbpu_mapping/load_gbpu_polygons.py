"""
Load Grizzly Bear Population Unit polygons from the local spatial bundle.

The bundle (a zipped shapefile / GeoPackage / GeoJSON) cannot be fetched by
script and has to be downloaded by hand into data/. It is extracted next to
the archive, the named layer is read as-is (no reprojection) and only one
GBPU version is kept.
"""

import logging
import zipfile
from pathlib import Path
from typing import Optional

import geopandas as gpd
import pandas as pd

from .helpers import require_columns

log = logging.getLogger(__name__)

LAYER_SUFFIXES = (".shp", ".gpkg", ".geojson", ".json")


def extract_bundle(zip_path, extract_dir: Optional[Path] = None) -> Path:
    zip_path = Path(zip_path)
    if not zip_path.exists():
        raise FileNotFoundError(
            f"Spatial bundle not found: {zip_path}. "
            "Download the GBPU polygons by hand and place the zip there, then re-run."
        )

    if extract_dir is None:
        name = zip_path.stem if zip_path.suffix else f"{zip_path.name}_extracted"
        extract_dir = zip_path.parent / name
    extract_dir = Path(extract_dir)
    extract_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, "r") as zip_ref:
        zip_ref.extractall(extract_dir)

    log.info("Extracted %s -> %s", zip_path.name, extract_dir)
    return extract_dir


def find_layer_file(directory, layer: str) -> Path:
    directory = Path(directory)
    for suffix in LAYER_SUFFIXES:
        hits = sorted(directory.rglob(f"{layer}{suffix}"))
        if hits:
            return hits[0]
    raise FileNotFoundError(f"No layer named {layer!r} ({', '.join(LAYER_SUFFIXES)}) under {directory}")


def filter_gbpu_version(gdf: gpd.GeoDataFrame, version: int = 2012,
                        vers_col: str = "GBPU_VERS") -> gpd.GeoDataFrame:
    """Keep features whose version equals `version`; nothing else is touched."""
    require_columns(gdf, [vers_col], "GBPU polygons")

    keep = pd.to_numeric(gdf[vers_col], errors="coerce") == version
    out = gdf.loc[keep].copy()
    log.info("GBPU version %s: kept %d of %d features", version, len(out), len(gdf))
    return out


def load_gbpu_polygons(zip_path, layer: str, version: int = 2012,
                       vers_col: str = "GBPU_VERS") -> gpd.GeoDataFrame:
    extracted = extract_bundle(zip_path)
    layer_file = find_layer_file(extracted, layer)

    if layer_file.suffix == ".gpkg":
        gdf = gpd.read_file(layer_file, layer=layer)
    else:
        gdf = gpd.read_file(layer_file)
    log.info("Loaded %d features from %s (CRS: %s)", len(gdf), layer_file.name, gdf.crs)

    return filter_gbpu_version(gdf, version, vers_col)
