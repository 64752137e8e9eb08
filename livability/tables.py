"""
Table region definitions and table population.

The browser shows six fixed tables ("regions"), one per tab. Each row compares
the selected town's value with its community type average and the regional
average. Row order and labels are fixed; ``build_table`` fills them in for one
town.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .formatter import (
    COUNT,
    DECIMAL_1DP,
    PERCENT_1DP,
    RATE_2DP,
    RESIDENT_SHARE_PCT,
    IndicatorFormat,
    format_value,
)
from .reference_data import ReferenceDataStore


class TableRegion(str, Enum):
    """The six table tabs."""

    DEMOGRAPHIC = "demog"
    WALK = "walk"
    BIKE = "bike"
    AUTO = "auto"
    PUBLIC_HEALTH = "phs"
    MODE_SHARE = "ms"


COLUMN_HEADERS = ("Indicator", "Municipality", "Community Type Average", "Regional Average")


@dataclass(frozen=True)
class RowSpec:
    label: str
    indicator: str
    kind: IndicatorFormat


@dataclass(frozen=True)
class RegionSpec:
    region: TableRegion
    tab: str
    caption_prefix: str
    summary: str
    rows: Tuple[RowSpec, ...]

    def caption(self, town_name: str) -> str:
        return f"{self.caption_prefix} {town_name}".rstrip()


REGION_SPECS: Tuple[RegionSpec, ...] = (
    RegionSpec(
        region=TableRegion.DEMOGRAPHIC,
        tab="demog",
        caption_prefix="Demographic Data for",
        summary=(
            "rows are demographic variables and columns include municipality value, "
            "community type average, and regional average"
        ),
        rows=(
            RowSpec("Population", "POP_2009", COUNT),
            RowSpec("Population Density", "POP_DENSITY", COUNT),
            RowSpec("Employment", "EMP_2009", COUNT),
            RowSpec("Employment Density", "EMP_DENSITY", COUNT),
            RowSpec("Elderly Population Percentage", "ELDERLY_POP_PCT", PERCENT_1DP),
        ),
    ),
    RegionSpec(
        region=TableRegion.WALK,
        tab="walk",
        caption_prefix="Walking Data for",
        summary=(
            "rows include miles of sidewalk and walk share and columns include "
            "municipality value, community type average, and regional average"
        ),
        rows=(
            RowSpec("Miles of Sidewalk", "SIDEWALK_MI", DECIMAL_1DP),
            RowSpec("Sidewalk Coverage", "SIDEWALK_COV_PCT", PERCENT_1DP),
            RowSpec("Resident Worker Walk Share", "WALK_SHARE_PCT", RESIDENT_SHARE_PCT),
        ),
    ),
    RegionSpec(
        region=TableRegion.BIKE,
        tab="bike",
        caption_prefix="Bicycling Data for",
        summary=(
            "rows include miles of bike trails and bike share and columns include "
            "municipality value, community type average, and regional average"
        ),
        rows=(
            RowSpec("Miles of Trails", "BIKE_TRAIL_MI", DECIMAL_1DP),
            RowSpec("Miles Bicycle Lanes", "BIKE_LANE_MI", DECIMAL_1DP),
            RowSpec("Bicycle Coverage", "BIKE_COV_PCT", PERCENT_1DP),
            RowSpec("Resident Worker Bicycle Share", "BIKE_SHARE_PCT", RESIDENT_SHARE_PCT),
        ),
    ),
    RegionSpec(
        region=TableRegion.AUTO,
        tab="auto",
        caption_prefix="Automotive Data for",
        summary=(
            "rows include vehicles per household and drive-alone and carpool shares and "
            "columns include municipality value, community type average, and regional average"
        ),
        rows=(
            RowSpec("Autos per Household", "AUTOS_PER_HH", DECIMAL_1DP),
            RowSpec("Daily Vehicle Miles Traveled per Household", "VMT_PER_HH", COUNT),
            RowSpec("Resident Worker Drive-alone Share", "DROVE_ALONE_SHARE_PCT", PERCENT_1DP),
            RowSpec("Resident Worker Carpool Share", "CARPOOL_SHARE_PCT", PERCENT_1DP),
        ),
    ),
    RegionSpec(
        region=TableRegion.PUBLIC_HEALTH,
        tab="health",
        caption_prefix="Public Health and Safety Data for",
        summary=(
            "rows include pedestrian and bicycle crash rates and columns include "
            "municipality value, community type average, and regional average"
        ),
        rows=(
            RowSpec("Annual Pedestrian Crash Rate", "PED_CRASH_RATE", RATE_2DP),
            RowSpec("Annual Bicycle Crash Rate", "BIKE_CRASH_RATE", RATE_2DP),
        ),
    ),
    RegionSpec(
        region=TableRegion.MODE_SHARE,
        tab="ms",
        caption_prefix="Journey-to-Work Mode Share Data for",
        summary=(
            "Rows are different modes to work and columns include municipality value, "
            "community type average, and regional average"
        ),
        # The mode share table repeats walk/bike shares without the small-sample flag.
        rows=(
            RowSpec("Drive Alone", "DROVE_ALONE_SHARE_PCT", PERCENT_1DP),
            RowSpec("Carpool", "CARPOOL_SHARE_PCT", PERCENT_1DP),
            RowSpec("Transit", "TRANSIT_SHARE_PCT", PERCENT_1DP),
            RowSpec("Bicycle", "BIKE_SHARE_PCT", PERCENT_1DP),
            RowSpec("Walk", "WALK_SHARE_PCT", PERCENT_1DP),
            RowSpec("Work at Home", "WAH_SHARE_PCT", PERCENT_1DP),
            RowSpec("Other", "OTHER_SHARE_PCT", PERCENT_1DP),
        ),
    ),
)

_SPECS_BY_REGION = {spec.region: spec for spec in REGION_SPECS}


def region_spec(region: TableRegion) -> RegionSpec:
    return _SPECS_BY_REGION[TableRegion(region)]


@dataclass(frozen=True)
class TableRow:
    """One rendered row: label plus the three formatted value columns."""

    label: str
    entity_value: str
    category_average: str
    region_average: str
    indicator: str
    theme_id: Optional[str] = None  # set when clicking the row selects a map theme
    emphasized: bool = False

    def as_tuple(self) -> Tuple[str, str, str, str]:
        return (self.label, self.entity_value, self.category_average, self.region_average)


@dataclass(frozen=True)
class TableInstruction:
    """A fully populated table for one region."""

    region: TableRegion
    caption: str
    summary: str
    rows: Tuple[TableRow, ...]
    headers: Tuple[str, ...] = COLUMN_HEADERS


def build_table(spec: RegionSpec, entity, reference: ReferenceDataStore) -> TableInstruction:
    """
    Populate one region's rows for a town.

    Args:
        spec: Region definition
        entity: Selected town (``catalog.Entity``)
        reference: Reference data for the average columns

    Returns:
        TableInstruction with formatted rows, in the region's fixed order
    """
    profile = reference.profile_for(entity.community_type)
    rows = []
    for row in spec.rows:
        category_raw = profile.get(row.indicator) if profile else None
        rows.append(
            TableRow(
                label=row.label,
                entity_value=format_value(
                    entity.indicators.get(row.indicator), row.kind, entity.small_sample
                ),
                category_average=format_value(category_raw, row.kind),
                region_average=format_value(reference.region_average(row.indicator), row.kind),
                indicator=row.indicator,
            )
        )
    return TableInstruction(
        region=spec.region,
        caption=spec.caption(entity.name),
        summary=spec.summary,
        rows=tuple(rows),
    )
