"""
Theme Registry for the Livable Communities map

Each map theme colors the towns by one indicator using a fixed threshold scale:
K-1 breakpoints split the values into K buckets, each with its own color and
legend label. A theme is also tied to a table tab and (usually) to the table
row showing the same indicator, so that clicking that row selects the theme.

The registry is static. Descriptors are validated once when the registry is
built; an invalid descriptor is a fatal startup error.
"""

from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from .errors import ThemeDefinitionError
from .formatter import to_number
from .tables import TableRegion, region_spec


class ThemeId(str, Enum):
    """Theme identifiers, equal to the indicator column each theme maps."""

    COMMUNITY_TYPE = "COMMUNITY_TYPE"
    POP_DENSITY = "POP_DENSITY"
    EMP_DENSITY = "EMP_DENSITY"
    ELDERLY_POP_PCT = "ELDERLY_POP_PCT"
    SIDEWALK_COV_PCT = "SIDEWALK_COV_PCT"
    SIDEWALK_MI = "SIDEWALK_MI"
    WALK_SHARE_PCT = "WALK_SHARE_PCT"
    BIKE_COV_PCT = "BIKE_COV_PCT"
    BIKE_SHARE_PCT = "BIKE_SHARE_PCT"
    BIKE_TRAIL_MI = "BIKE_TRAIL_MI"
    BIKE_LANE_MI = "BIKE_LANE_MI"
    AUTOS_PER_HH = "AUTOS_PER_HH"
    VMT_PER_HH = "VMT_PER_HH"
    PED_CRASH_RATE = "PED_CRASH_RATE"
    BIKE_CRASH_RATE = "BIKE_CRASH_RATE"

    @classmethod
    def parse(cls, raw: Any) -> Optional["ThemeId"]:
        """Theme id from a raw value, or None when it names no theme."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip())
        except ValueError:
            return None


@dataclass(frozen=True)
class ThemeDescriptor:
    """Display metadata for one map theme."""

    theme_id: ThemeId
    name: str
    breakpoints: Tuple[float, ...]
    colors: Tuple[str, ...]
    legend_labels: Tuple[str, ...]
    description: str
    source: str
    map_alt_text: str
    legend_alt_text: str
    table_region: TableRegion
    table_row: Optional[int] = None  # row index in table_region showing this indicator

    def __post_init__(self):
        object.__setattr__(self, "breakpoints", tuple(float(b) for b in self.breakpoints))
        object.__setattr__(self, "colors", tuple(self.colors))
        object.__setattr__(self, "legend_labels", tuple(self.legend_labels))

        if any(b >= nxt for b, nxt in zip(self.breakpoints, self.breakpoints[1:])):
            raise ThemeDefinitionError(
                self.theme_id, f"breakpoints must be strictly increasing: {self.breakpoints}"
            )
        expected = len(self.breakpoints) + 1
        if len(self.colors) != expected:
            raise ThemeDefinitionError(
                self.theme_id, f"expected {expected} colors, got {len(self.colors)}"
            )
        if len(self.legend_labels) != expected:
            raise ThemeDefinitionError(
                self.theme_id, f"expected {expected} legend labels, got {len(self.legend_labels)}"
            )

    @property
    def bucket_count(self) -> int:
        return len(self.breakpoints) + 1

    @property
    def pointer_text(self) -> str:
        return f"{self.description}<br><br>Data from: {self.source}"

    def classify(self, value: Any) -> Optional[int]:
        return classify(self, value)

    def color_for(self, value: Any) -> Optional[str]:
        bucket = classify(self, value)
        return None if bucket is None else self.colors[bucket]

    def legend(self) -> List[Tuple[str, str]]:
        """Ordered ``(color, label)`` pairs, lowest bucket first."""
        return list(zip(self.colors, self.legend_labels))


def classify(descriptor: ThemeDescriptor, value: Any) -> Optional[int]:
    """
    Threshold classification of a value into a bucket index.

    The bucket is the number of breakpoints less than or equal to the value,
    so a value exactly on a breakpoint falls into the higher bucket
    (``[750, 2000, 5000]``: 749 -> 0, 750 -> 1, 2000 -> 2, 5000 -> 3).

    Returns:
        Bucket index in ``[0, K-1]``, or None when the value is not numeric
    """
    number = to_number(value)
    if number is None:
        return None
    return bisect_right(descriptor.breakpoints, number)


THEMES: Tuple[ThemeDescriptor, ...] = (
    ThemeDescriptor(
        theme_id=ThemeId.COMMUNITY_TYPE,
        name="Community Type",
        breakpoints=(1.5, 2.5, 3.5),
        colors=("#6B0000", "#C66B18", "#F7C64A", "#FFFF84"),
        legend_labels=(
            "Inner Core",
            "Regional Urban Center",
            "Maturing Suburb",
            "Developing Suburb",
        ),
        description="Boston Region Towns by Community Type",
        source="MAPC",
        map_alt_text="Map of Boston Region MPO towns, symbolized by community type",
        legend_alt_text=(
            "Boston Region Towns by Community Type. Categories are inner core, regional "
            "urban center, maturing suburb, developing suburb"
        ),
        table_region=TableRegion.DEMOGRAPHIC,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.POP_DENSITY,
        name="Population Density",
        breakpoints=(750, 2000, 5000),
        colors=("#e6e5fe", "#cdcbfe", "#7f7bd0", "#595691"),
        legend_labels=(
            "< 750 people per sq mi",
            "750-1999 people per sq mi",
            "2000-5000 people per sq mi",
            "> 5000 people per sq mi",
        ),
        description="Population density (residents per sq mi)",
        source="regional model estimates, 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by population density",
        legend_alt_text=(
            "Population Density. Population per square mile, 2009 estimate. Four categories "
            "are people per square mile ranging from less than 750 to more than 5000"
        ),
        table_region=TableRegion.DEMOGRAPHIC,
        table_row=1,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.EMP_DENSITY,
        name="Employment Density",
        breakpoints=(1000, 2500, 5000),
        colors=("#D6F7AD", "#ADBD7B", "#849452", "#636B29"),
        legend_labels=(
            "< 1000 jobs per sq mi",
            "1000-2499 jobs per sq mi",
            "2500-5000 jobs per sq mi",
            "> 5000 jobs per sq mi",
        ),
        description="Employment density (jobs per sq mi)",
        source="regional model estimates, 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by employment density",
        legend_alt_text=(
            "Employment Density. Employment per square mile, 2009 estimate. Four categories "
            "are jobs per square mile ranging from less than 1000 to more than 5000"
        ),
        table_region=TableRegion.DEMOGRAPHIC,
        table_row=3,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.ELDERLY_POP_PCT,
        name="Elderly Population Percentage",
        breakpoints=(5, 8, 10),
        colors=("#FEF7E7", "#E79484", "#BD4A39", "#8C0808"),
        legend_labels=("< 5%", "5-8%", "8-10%", "> 10%"),
        description="Percentage of elderly (over 70) population",
        source="regional model estimates, 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by elderly population percentage",
        legend_alt_text=(
            "Percentage of town population over age 70. Four categories range from less "
            "than 5 percent to over 10 percent"
        ),
        table_region=TableRegion.DEMOGRAPHIC,
        table_row=4,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.SIDEWALK_COV_PCT,
        name="Sidewalk Coverage",
        breakpoints=(25, 50, 75),
        colors=("#f5e1fe", "#eac3fe", "#9f65be", "#592277"),
        legend_labels=("< 25%", "25-50%", "50-75%", "> 75%"),
        description=(
            "Percentage of non-Interstate roadway miles with sidewalks on at least one side"
        ),
        source="Massachusetts Roadway Inventory 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by sidewalk coverage",
        legend_alt_text=(
            "Percentage of non-Interstate roadway miles with sidewalks on at least one side. "
            "Four categories range from less than 25% to over 75%"
        ),
        table_region=TableRegion.WALK,
        table_row=1,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.SIDEWALK_MI,
        name="Miles of Sidewalk",
        breakpoints=(50, 100, 200),
        colors=("#FFFF84", "#F7C64A", "#C66B18", "#6B0000"),
        legend_labels=("< 50 miles", "50-99 miles", "100-200 miles", "> 200 miles"),
        description="Miles of non-Interstate roadway with sidewalks on at least one side",
        source="Massachusetts Roadway Inventory 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by sidewalk mileage",
        legend_alt_text=(
            "Non-Interstate roadway miles with sidewalks on at least one side. Four "
            "categories range from less than 50 miles to over 200 miles."
        ),
        table_region=TableRegion.WALK,
        table_row=0,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.WALK_SHARE_PCT,
        name="Resident Walk Share",
        breakpoints=(5, 10, 20),
        colors=("#FFE7E7", "#E79484", "#BD4A39", "#8C0808"),
        legend_labels=("< 5%", "5-10%", "10-20%", "> 20%"),
        description="Percentage of resident workers who walk to work",
        source="2000 Census Journey-to-Work",
        map_alt_text=(
            "Map of Boston Region MPO towns, symbolized by Census Journey to Work walk share"
        ),
        legend_alt_text=(
            "Census Journey to Work percent walk share. Percentage of workers who live and "
            "work in the community and walk to work. Four categories are percentage values "
            "up to and over 20 %"
        ),
        table_region=TableRegion.WALK,
        table_row=2,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.BIKE_COV_PCT,
        name="Bike Coverage",
        breakpoints=(2, 4, 8),
        colors=("#DEF7EF", "#8CB5AD", "#4A7B73", "#104A4A"),
        legend_labels=("< 2%", "2-4%", "4-8%", "> 8%"),
        description=(
            "Percent of non-Interstate roadway miles with bike lanes or shoulders > 4 feet wide"
        ),
        source="Massachusetts Roadway Inventory 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by bicycle coverage",
        legend_alt_text=(
            "Percent of non-Interstate roadway miles with bike lanes or shoulders over 4 feet "
            "wide. Four categories are percentage values up to and over 8 %"
        ),
        table_region=TableRegion.BIKE,
        table_row=2,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.BIKE_SHARE_PCT,
        name="Resident Bike Share",
        breakpoints=(0.5, 1, 2),
        colors=("#d7f3fe", "#b0e7fe", "#52afd6", "#397a95"),
        legend_labels=("< 0.5%", "0.5-1%", "1-2%", "> 2%"),
        description="Percentage of resident workers who bike to work",
        source="2000 Census Journey-to-Work",
        map_alt_text=(
            "Map of Boston Region MPO towns, symbolized by Census Journey to Work bike share"
        ),
        legend_alt_text=(
            "Census Journey to Work bike share. Percent of workers who live and work in the "
            "community and bike to work. Four categories are percentages of work trips up "
            "to and over 2 %"
        ),
        table_region=TableRegion.BIKE,
        table_row=3,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.BIKE_TRAIL_MI,
        name="Miles of Bicycle Trails",
        breakpoints=(2.5, 5, 10),
        colors=("#EFEFCE", "#D6EF8C", "#BDDE52", "#9CC310"),
        legend_labels=("< 2.5 miles", "2.5-5 miles", "5-10 miles", "> 10 miles"),
        description="Miles of off-road trails, paved and unpaved",
        source="CTPS bicycle inventory data",
        map_alt_text="Map of Boston Region MPO towns, symbolized by bike trail mileage",
        legend_alt_text=(
            "Miles of off-road bike trails, paved and unpaved. Four categories are mileage "
            "totals up to and over 10 miles"
        ),
        table_region=TableRegion.BIKE,
        table_row=0,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.BIKE_LANE_MI,
        name="Miles of Bicycle Lanes",
        breakpoints=(1, 2.5, 10),
        colors=("#FFD6F7", "#DE8CAD", "#B5526B", "#8C1039"),
        legend_labels=("< 1 mile", "1-2.5 miles", "2.5-10 miles", "> 10 miles"),
        description=(
            "Miles of non-Interstate roadways with bike lanes or shoulders > 4 feet wide"
        ),
        source="Massachusetts Roadway Inventory 2009",
        map_alt_text="Map of Boston Region MPO towns, symbolized by bike lane mileage",
        legend_alt_text=(
            "Miles of non-Interstate roadways with bike lanes or shoulders over 4 feet wide. "
            "Four categories are mileage totals up to and over 10 miles"
        ),
        table_region=TableRegion.BIKE,
        table_row=1,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.AUTOS_PER_HH,
        name="Autos per Household",
        breakpoints=(1.5, 1.75, 2),
        colors=("#d7f3fe", "#b0e7fe", "#52afd6", "#397a95"),
        legend_labels=("< 1.5 autos", "1.5-1.75 autos", "1.75-2.0 autos", "> 2.0 autos"),
        description="Average autos per household",
        source="MAPC",
        map_alt_text="Map of Boston Region MPO towns, symbolized by autos per household",
        legend_alt_text=(
            "Average autos per household. Four categories range from 1.5 to more than 2 "
            "autos per household"
        ),
        table_region=TableRegion.AUTO,
        table_row=0,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.VMT_PER_HH,
        name="Daily VMT per Household",
        breakpoints=(40, 60, 80),
        colors=("#FFE7E7", "#E79484", "#BD4A39", "#8C0808"),
        legend_labels=("< 40 miles", "40-60 miles", "60-80 miles", "> 80 miles"),
        description="Average daily vehicle miles of travel (VMT) per household, 2005-2007",
        source="MassGIS and MAPC",
        map_alt_text=(
            "Map of Boston Region MPO towns, symbolized by vehicle miles traveled per household"
        ),
        legend_alt_text=(
            "Average daily vehicle miles of travel per household. Four categories range "
            "from less than 40 to more than 80 miles"
        ),
        table_region=TableRegion.AUTO,
        table_row=1,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.PED_CRASH_RATE,
        name="Pedestrian Crash Rate",
        breakpoints=(0.1, 0.3, 0.6),
        colors=("#fee3d7", "#fec6b0", "#935238", "#663927"),
        legend_labels=("< 0.1", "0.1-0.3", "0.3-0.6", "> 0.6"),
        description=(
            "Number of crashes involving pedestrians per year per 1,000 residents, 1996-2007"
        ),
        source="Mass. Registry of Motor Vehicles",
        map_alt_text="Map of Boston Region MPO towns, symbolized by pedestrian crash rate",
        legend_alt_text=(
            "Number of crashes involving pedestrians per year per 1000 residents, 1996-2007. "
            "Values range from less than 0.1 to greater than 0.6."
        ),
        table_region=TableRegion.PUBLIC_HEALTH,
        table_row=0,
    ),
    ThemeDescriptor(
        theme_id=ThemeId.BIKE_CRASH_RATE,
        name="Bicycle Crash Rate",
        breakpoints=(0.1, 0.2, 0.5),
        colors=("#FFFF84", "#F7C64A", "#C66B18", "#6B0000"),
        legend_labels=("< 0.1", "0.1-0.2", "0.2-0.5", "> 0.5"),
        description=(
            "Number of crashes involving bicyclists per year per 1,000 residents, 1996-2007"
        ),
        source="Mass. Registry of Motor Vehicles",
        map_alt_text="Map of Boston Region MPO towns, symbolized by bicycle crash rate",
        legend_alt_text=(
            "Number of crashes involving bicyclists per year per 1000 residents, 1996-2007. "
            "Values range from less than 0.1 to greater than 0.5."
        ),
        table_region=TableRegion.PUBLIC_HEALTH,
        table_row=1,
    ),
)


class ThemeRegistry:
    """
    Ordered, read-only lookup of theme descriptors.

    Besides the per-descriptor invariants, the registry checks that every
    table-row association points at an existing row and that no two themes
    claim the same row, so a row click always resolves to exactly one theme.
    """

    def __init__(self, descriptors: Optional[Sequence[ThemeDescriptor]] = None):
        if descriptors is None:
            descriptors = THEMES

        self._themes: Dict[ThemeId, ThemeDescriptor] = {}
        self._rows: Dict[Tuple[TableRegion, int], ThemeId] = {}

        for descriptor in descriptors:
            self._register(descriptor)

        logger.debug(f"🎨 Theme registry ready with {len(self._themes)} themes")

    def _register(self, descriptor: ThemeDescriptor) -> None:
        if descriptor.theme_id in self._themes:
            raise ThemeDefinitionError(descriptor.theme_id, "duplicate theme id")

        if descriptor.table_row is not None:
            row_count = len(region_spec(descriptor.table_region).rows)
            if not 0 <= descriptor.table_row < row_count:
                raise ThemeDefinitionError(
                    descriptor.theme_id,
                    f"table row {descriptor.table_row} outside "
                    f"{descriptor.table_region.value} table ({row_count} rows)",
                )
            key = (descriptor.table_region, descriptor.table_row)
            if key in self._rows:
                raise ThemeDefinitionError(
                    descriptor.theme_id,
                    f"table row already mapped to {self._rows[key].value}",
                )
            self._rows[key] = descriptor.theme_id

        self._themes[descriptor.theme_id] = descriptor
        logger.trace(f"Registered theme: {descriptor.theme_id.value}")

    def get(self, theme_id: Any) -> Optional[ThemeDescriptor]:
        """Descriptor for a theme id (enum or string), or None when unknown."""
        parsed = ThemeId.parse(theme_id)
        if parsed is None:
            return None
        return self._themes.get(parsed)

    def theme_for_row(self, region: Any, row_index: int) -> Optional[ThemeId]:
        """Theme selected by clicking a table row, or None for rows without a theme."""
        try:
            key = (TableRegion(region), int(row_index))
        except (TypeError, ValueError):
            return None
        return self._rows.get(key)

    def options(self) -> List[Tuple[str, str]]:
        """``(theme id, display name)`` pairs for the theme dropdown."""
        return [(theme_id.value, d.name) for theme_id, d in self._themes.items()]

    def __iter__(self) -> Iterator[ThemeDescriptor]:
        return iter(self._themes.values())

    def __len__(self) -> int:
        return len(self._themes)

    def __contains__(self, theme_id: Any) -> bool:
        return self.get(theme_id) is not None
