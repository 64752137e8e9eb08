"""
Shared fixtures: a three-town catalog built from in-memory GeoDataFrame and
DataFrame records, and the same data written to disk with a config.yaml.
"""

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
import yaml
from loguru import logger
from shapely.geometry import Polygon, box

from livability.catalog import build_catalog
from livability.controller import SelectionController


@pytest.fixture(autouse=True)
def quiet_logger():
    """Drop any sinks a test (or the CLI) added so later tests never write to closed streams."""
    yield
    logger.remove()


def create_sample_towns() -> gpd.GeoDataFrame:
    """Three adjacent square towns."""
    return gpd.GeoDataFrame(
        {
            "TOWN_ID": [1, 2, 3],
            "TOWN": ["BOSTON", "NORTH READING", "ACTON"],
        },
        geometry=[
            box(-71.10, 42.30, -71.00, 42.40),
            box(-71.00, 42.30, -70.90, 42.40),
            box(-70.90, 42.30, -70.80, 42.40),
        ],
        crs="EPSG:4326",
    )


def create_sample_indicators() -> pd.DataFrame:
    """Indicator records for the three towns; town 2 has a small survey sample."""
    return pd.DataFrame(
        {
            "TOWN_ID": [1, 2, 3],
            "TOWN": ["BOSTON", "NORTH READING", "ACTON"],
            "COMMUNITY_TYPE": [1, 3, 4],
            "POP_2009": [645169, 14892, 21924],
            "POP_DENSITY": [13340.5, 2000, 1080.2],
            "EMP_2009": [541000, 6040, 9210],
            "EMP_DENSITY": [11200, 450.6, 453.1],
            "ELDERLY_POP_PCT": [7.83, 11.2, 6.05],
            "SIDEWALK_MI": [780.25, 48.0, 61.44],
            "SIDEWALK_COV_PCT": [95.1, 44.7, 35.3],
            "WALK_SHARE_PCT": [27.4, 19.83, np.nan],
            "BIKE_TRAIL_MI": [14.2, 1.1, 4.9],
            "BIKE_LANE_MI": [22.5, 0.4, 2.5],
            "BIKE_COV_PCT": [3.3, 0.9, 2.2],
            "BIKE_SHARE_PCT": [1.9, 0.26, 0.4],
            "AUTOS_PER_HH": [1.02, 2.14, 2.0],
            "VMT_PER_HH": [27.6, 70.2, 81],
            "DROVE_ALONE_SHARE_PCT": [41.2, 82.0, 77.5],
            "CARPOOL_SHARE_PCT": [7.1, 6.3, 5.4],
            "PED_CRASH_RATE": [0.712, 0.125, 0.1],
            "BIKE_CRASH_RATE": [0.455, 0.05, 0.2],
            "TRANSIT_SHARE_PCT": [32.1, 3.4, 6.6],
            "WAH_SHARE_PCT": [2.9, 6.8, 8.1],
            "OTHER_SHARE_PCT": [1.0, 0.7, 0.4],
            "SMALL_SAMPLE_SIZE": ["N", "Y", "N"],
        }
    )


@pytest.fixture
def towns_gdf() -> gpd.GeoDataFrame:
    return create_sample_towns()


@pytest.fixture
def indicators_df() -> pd.DataFrame:
    return create_sample_indicators()


@pytest.fixture
def catalog(towns_gdf, indicators_df):
    return build_catalog(towns_gdf, indicators_df)


@pytest.fixture
def frames():
    """Frames received by a recording sink, in delivery order."""
    return []


@pytest.fixture
def controller(catalog, frames):
    controller = SelectionController(sinks=[frames.append])
    controller.load(catalog)
    return controller


@pytest.fixture
def data_files(tmp_path, towns_gdf, indicators_df):
    """Sample towns, indicators and state outline written to tmp_path/data."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()

    towns_path = data_dir / "towns.geojson"
    towns_gdf.to_file(towns_path, driver="GeoJSON")

    indicators_path = data_dir / "livability.csv"
    indicators_df.to_csv(indicators_path, index=False)

    outline = gpd.GeoDataFrame(
        {"NAME": ["Massachusetts"]},
        geometry=[Polygon([(-73.5, 41.2), (-69.9, 41.2), (-69.9, 42.9), (-73.5, 42.9)])],
        crs="EPSG:4326",
    )
    outline_path = data_dir / "outline.geojson"
    outline.to_file(outline_path, driver="GeoJSON")

    return {"towns": towns_path, "indicators": indicators_path, "outline": outline_path}


@pytest.fixture
def config_file(tmp_path, data_files):
    """config.yaml pointing at the sample data with absolute paths."""
    config_data = {
        "project_name": "Test Browser",
        "input_files": {
            "towns_topojson": str(data_files["towns"]),
            "indicators_csv": str(data_files["indicators"]),
            "outline_topojson": str(data_files["outline"]),
        },
        # GeoJSON files hold a single unnamed layer
        "layers": {"towns": "", "outline": ""},
        "directories": {"output": str(tmp_path / "output")},
    }
    path = tmp_path / "config.yaml"
    with open(path, "w") as f:
        yaml.dump(config_data, f)
    return path
