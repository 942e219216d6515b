"""Shared fixtures: small tables, GBPU polygons and a zipped spatial bundle."""

import zipfile

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import MultiPolygon, Polygon

UNUSED = r"^(Unnamed: \d+|X\d*)$"


def square(x0, y0, size=10.0):
    return Polygon([(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)])


@pytest.fixture
def unused_pattern():
    return UNUSED


@pytest.fixture
def mortality_raw():
    return pd.DataFrame({
        "GBPU_NAME": ["Flathead", "North Purcells", "Flathead", "Flathead"],
        "AGE_CLASS": ["0-5", "5+", "10", "Unknown"],
        "KILL_CODE": ["1", "2", "1", "3"],
        "Unnamed: 3": [None, None, None, None],
    }, dtype=object)


@pytest.fixture
def population_raw():
    return pd.DataFrame({
        "GBPU": ["Central Purcells", "Central Purcells", "North Purcell", "Flathead", "Flathead", "Flathead"],
        "MU": ["4-20", "4-21", "4-22", "4-1", "4-2", "4-3"],
        "Estimate": ["10", "20", "15", "40", None, "5"],
        "Total_Area": ["5", "5", "10", "10", "5", ""],
        "Notes": ["Estimates from 2012 survey", "Areas in km2", None, "Revised 2015", "", "per-row note"],
        "X": [None] * 6,
    }, dtype=object)


@pytest.fixture
def polygons():
    return gpd.GeoDataFrame(
        {
            "GBPU_NAME": ["Central-South Purcells", "North Purcells", "Flathead", "Old Flathead"],
            "GBPU_VERS": [2012, 2012, 2012, 2010],
        },
        geometry=[
            square(0, 0),
            MultiPolygon([square(20, 0), square(40, 0)]),
            Polygon(square(0, 20, 30).exterior.coords, [square(10, 30).exterior.coords]),
            square(0, 20, 30),
        ],
        crs="EPSG:3005",
    )


@pytest.fixture
def gbpu_zip(tmp_path, polygons):
    """Zipped GeoPackage layer named GBPU_BC_polygon, as downloaded by hand."""
    src = tmp_path / "src"
    src.mkdir()
    layer_file = src / "GBPU_BC_polygon.gpkg"
    polygons.to_file(layer_file, layer="GBPU_BC_polygon", driver="GPKG")

    zip_path = tmp_path / "GBPU_BC_polygons.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.write(layer_file, arcname="GBPU_BC_polygon.gpkg")
    return zip_path
