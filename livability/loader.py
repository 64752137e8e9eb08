"""
Data loading for the browser session.

Reads the three static sources (town geometries, the livability indicator
table and the state outline) once, and joins them into an ``EntityCatalog``.
Any unreachable or malformed source is a ``DataLoadError``: the session cannot
start without all three, and nothing is retried.
"""

import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import geopandas as gpd
import pandas as pd
from loguru import logger

from .catalog import ID_COLUMN, EntityCatalog, build_catalog
from .errors import DataLoadError

PathLike = Union[str, Path]


@dataclass
class LoadedSources:
    """Result of the one-time load: the merged catalog plus the context outline."""

    catalog: EntityCatalog
    outline: Optional[gpd.GeoDataFrame] = None


def reproject(gdf: gpd.GeoDataFrame, crs: str, source_description: str) -> gpd.GeoDataFrame:
    """Bring a GeoDataFrame into the output CRS; data without a CRS is assumed to be in it."""
    logger.debug(f"  📍 {source_description} CRS: {gdf.crs}")
    if gdf.crs is None:
        return gdf.set_crs(crs)
    if gdf.crs != crs:
        logger.debug(f"  🔄 Reprojecting {source_description} to {crs}")
        return gdf.to_crs(crs)
    return gdf


def read_geometry(
    path: PathLike,
    layer: Optional[str] = None,
    source_description: str = "geometry",
    crs: str = "EPSG:4326",
) -> gpd.GeoDataFrame:
    """
    Read a geometry file (TopoJSON, GeoJSON, ...) into a GeoDataFrame.

    Args:
        path: File to read
        layer: Object/layer name inside the file (TopoJSON object name)
        source_description: Name used in log and error messages
        crs: Output coordinate reference system

    Raises:
        DataLoadError: if the file is missing, unreadable or empty
    """
    path = Path(path)
    logger.info(f"🗺️ Loading {source_description} from {path}")

    if not path.exists():
        raise DataLoadError(source_description, f"file not found: {path}")

    try:
        gdf = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)
    except Exception as e:
        logger.trace(traceback.format_exc())
        raise DataLoadError(source_description, str(e)) from e

    if len(gdf) == 0:
        raise DataLoadError(source_description, "no features")

    logger.success(f"  ✅ Loaded {len(gdf):,} features")
    return reproject(gdf, crs, source_description)


def read_indicators(path: PathLike) -> pd.DataFrame:
    """
    Read the livability indicator table.

    Raises:
        DataLoadError: if the file is missing, unparsable or lacks ``TOWN_ID``
    """
    path = Path(path)
    logger.info(f"📊 Loading indicator table from {path}")

    if not path.exists():
        raise DataLoadError("indicator table", f"file not found: {path}")

    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        logger.trace(traceback.format_exc())
        raise DataLoadError("indicator table", str(e)) from e

    if ID_COLUMN not in df.columns:
        logger.debug(f"     Available columns: {list(df.columns)}")
        raise DataLoadError("indicator table", f"missing {ID_COLUMN} column")

    logger.success(f"  ✅ Loaded {len(df):,} indicator records with {len(df.columns)} columns")
    return df


def load_sources(
    towns_path: PathLike,
    indicators_path: PathLike,
    outline_path: Optional[PathLike] = None,
    towns_layer: Optional[str] = None,
    outline_layer: Optional[str] = None,
    crs: str = "EPSG:4326",
) -> LoadedSources:
    """
    Load every source and build the catalog. All-or-nothing.

    Returns:
        LoadedSources with the merged catalog and (if configured) the outline
    """
    towns = read_geometry(towns_path, towns_layer, "towns geometry", crs)
    indicators = read_indicators(indicators_path)
    outline = None
    if outline_path is not None:
        outline = read_geometry(outline_path, outline_layer, "state outline", crs)

    catalog = build_catalog(towns, indicators)
    return LoadedSources(catalog=catalog, outline=outline)


def load_sources_from_config(config) -> LoadedSources:
    """Load the sources named in ``input_files`` of an ``ops.Config``."""
    outline_path = None
    if config.data.get("input_files", {}).get("outline_topojson"):
        outline_path = config.get_input_path("outline_topojson")

    return load_sources(
        towns_path=config.get_input_path("towns_topojson"),
        indicators_path=config.get_input_path("indicators_csv"),
        outline_path=outline_path,
        towns_layer=config.get_layer_name("towns"),
        outline_layer=config.get_layer_name("outline"),
        crs=config.get_system_setting("output_crs"),
    )
