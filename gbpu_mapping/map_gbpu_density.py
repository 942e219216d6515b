"""
Choropleth of grizzly bear density by GBPU.

Polygons are flattened into a vertex table (one row per boundary vertex,
tagged with the unit label, ring number and hole flag), the aggregate is joined
onto every vertex of its unit, and each feature is drawn as one compound path:
exteriors counter-clockwise, holes clockwise, so a hole stays open and any
unit lying inside it shows through.

Projection: BC polygons usually come in BC Albers (equal-area metres), drawn
with an equal aspect. Geographic (lon/lat) input is drawn equirectangular,
with the aspect corrected for the mean latitude.
"""

import logging

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib import colormaps
from matplotlib.cm import ScalarMappable
from matplotlib.colors import Normalize
from matplotlib.patches import Patch, PathPatch
from matplotlib.path import Path
from shapely.geometry.polygon import orient

from .helpers import require_columns

log = logging.getLogger(__name__)

VERTEX_COLS = ["long", "lat", "order", "hole", "piece", "group", "id"]

OUTLINE_COLOR = "white"
NO_DATA_COLOR = "#d9d9d9"
BACKGROUND_COLOR = "white"


# ══════════════════════════════════════════════════════════════════════════════
# FORTIFY
# ══════════════════════════════════════════════════════════════════════════════

def polygon_parts(geom):
    """Polygon parts of a (Multi)Polygon or collection; nothing for other types."""
    if geom is None or geom.is_empty:
        return []
    if geom.geom_type == "Polygon":
        return [geom]
    if hasattr(geom, "geoms"):
        parts = []
        for g in geom.geoms:
            parts.extend(polygon_parts(g))
        return parts
    return []


def fortify_polygons(gdf, id_col: str = "GBPU_NAME") -> pd.DataFrame:
    """
    Flatten polygon features into an ordered vertex table.

    Each ring (exterior or hole) of each polygon part is a `piece`, numbered
    from 1 within its feature; `group` ("<feature>.<piece>") identifies the
    ring across the table and `order` runs over all vertices of the feature.
    Exteriors are wound counter-clockwise and holes clockwise.
    """
    require_columns(gdf, [id_col], "GBPU polygons")

    rows = []
    for feat, label, geom in zip(gdf.index, gdf[id_col], gdf.geometry):
        piece = 0
        order = 0
        for poly in polygon_parts(geom):
            poly = orient(poly, sign=1.0)
            rings = [(poly.exterior, False)] + [(ring, True) for ring in poly.interiors]
            for ring, hole in rings:
                piece += 1
                for x, y, *_ in ring.coords:
                    order += 1
                    rows.append((x, y, order, hole, piece, f"{feat}.{piece}", label))

    vertices = pd.DataFrame(rows, columns=VERTEX_COLS)
    log.info("Fortified %d features into %s vertices (%d rings)",
             len(gdf), f"{len(vertices):,}", vertices["group"].nunique())
    return vertices


# ══════════════════════════════════════════════════════════════════════════════
# JOIN
# ══════════════════════════════════════════════════════════════════════════════

def join_density(vertices: pd.DataFrame, aggregate: pd.DataFrame,
                 id_col: str = "id", key: str = "GBPU") -> pd.DataFrame:
    """
    Left join of the aggregate onto every vertex of its unit.

    Aggregate rows without a label are left out: pandas would otherwise match
    them to unlabeled polygons.
    """
    labeled = aggregate.dropna(subset=[key])
    n_unlabeled = len(aggregate) - len(labeled)
    if n_unlabeled:
        log.info("Leaving %d unlabeled aggregate row(s) out of the join", n_unlabeled)

    merged = vertices.merge(labeled, left_on=id_col, right_on=key, how="left",
                            validate="many_to_one")

    unmatched = merged.loc[merged[key].isna(), id_col].dropna().unique()
    if len(unmatched):
        log.warning("%d unit(s) drawn without data: %s", len(unmatched), sorted(unmatched))
    return merged


# ══════════════════════════════════════════════════════════════════════════════
# DRAW
# ══════════════════════════════════════════════════════════════════════════════

def density_norm(values: pd.Series) -> Normalize:
    values = pd.to_numeric(values, errors="coerce")
    finite = values[np.isfinite(values)]
    if finite.empty:
        return Normalize(vmin=0, vmax=1)
    return Normalize(vmin=finite.min(), vmax=finite.max())


def feature_path(g: pd.DataFrame) -> Path:
    """All rings of one feature as a single compound Path."""
    verts, codes = [], []
    for _, ring in g.sort_values("order").groupby("piece", sort=True):
        xy = ring[["long", "lat"]].to_numpy()
        verts.extend(xy)
        codes += [Path.MOVETO] + [Path.LINETO] * (len(xy) - 2) + [Path.CLOSEPOLY]
    return Path(verts, codes)


def plot_density_map(merged: pd.DataFrame, value_col: str = "Density", geographic: bool = False,
                     cmap: str = "viridis", title: str = "Grizzly bear density by GBPU",
                     figsize=(10, 10)):
    """One filled patch per feature coloured by `value_col`; returns the Figure."""
    require_columns(merged, VERTEX_COLS + [value_col], "Vertex table")

    colormap = colormaps[cmap]
    merged = merged.assign(_feature=merged["group"].astype(str).str.rsplit(".", n=1).str[0])
    features = merged.groupby("_feature", sort=False)
    norm = density_norm(features[value_col].first())

    fig, ax = plt.subplots(figsize=figsize)
    ax.set_facecolor(BACKGROUND_COLOR)

    any_no_data = False
    for _, g in features:
        v = pd.to_numeric(g[value_col], errors="coerce").iloc[0]
        if np.isfinite(v):
            face = colormap(norm(v))
        else:
            face = NO_DATA_COLOR
            any_no_data = True
        patch = PathPatch(feature_path(g), facecolor=face, edgecolor=OUTLINE_COLOR, linewidth=0.5)
        patch.set_gid(str(g["id"].iloc[0]))
        ax.add_patch(patch)
    ax.autoscale_view()

    if geographic and len(merged):
        mean_lat = merged["lat"].mean()
        ax.set_aspect(1 / np.cos(np.deg2rad(mean_lat)))
    else:
        ax.set_aspect("equal")

    sm = ScalarMappable(norm=norm, cmap=colormap)
    sm.set_array([])
    fig.colorbar(sm, ax=ax, shrink=0.6, label="Bears per 1000 km²")

    if any_no_data:
        ax.legend(handles=[Patch(facecolor=NO_DATA_COLOR, edgecolor="black", label="No data")],
                  loc="lower left", frameon=True)

    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xticks([])
    ax.set_yticks([])
    fig.tight_layout()
    return fig


def render_density_map(polygons, aggregate: pd.DataFrame, id_col: str = "GBPU_NAME",
                       key: str = "GBPU", **plot_kwargs):
    """Fortify, join and plot. Returns (vertex table with density, Figure)."""
    vertices = fortify_polygons(polygons, id_col)
    merged = join_density(vertices, aggregate, key=key)

    geographic = polygons.crs is not None and polygons.crs.is_geographic
    fig = plot_density_map(merged, geographic=geographic, **plot_kwargs)
    return merged, fig
