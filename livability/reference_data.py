"""
Reference Data Store

Average livability statistics by MAPC community type and for the region as a
whole. These are the "Community Type Average" and "Regional Average" columns of
every data table. Loaded once at startup, never mutated.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from .formatter import to_number


class CommunityType(IntEnum):
    """MAPC community types, numbered as in the ``COMMUNITY_TYPE`` column."""

    INNER_CORE = 1
    REGIONAL_URBAN_CENTER = 2
    MATURING_SUBURB = 3
    DEVELOPING_SUBURB = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def parse(cls, raw: Any) -> Optional["CommunityType"]:
        """Parse a raw ``COMMUNITY_TYPE`` attribute; None when missing or out of range."""
        number = to_number(raw)
        if number is None:
            return None
        try:
            return cls(int(number))
        except ValueError:
            return None


@dataclass(frozen=True)
class ReferenceProfile:
    """A named bucket of precomputed averages keyed by indicator name."""

    name: str
    averages: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "averages", MappingProxyType(dict(self.averages)))

    def get(self, indicator: str) -> Optional[float]:
        return self.averages.get(indicator)


# Averages published by MAPC per community type. Housing and transportation
# cost figures are only available region-wide.
COMMUNITY_TYPE_AVERAGES: Dict[CommunityType, Dict[str, float]] = {
    CommunityType.INNER_CORE: {
        "POP_2009": 86443,
        "POP_DENSITY": 9751,
        "EMP_2009": 56555,
        "EMP_DENSITY": 6380,
        "ELDERLY_POP_PCT": 9.2,
        "SIDEWALK_MI": 132.5,
        "SIDEWALK_COV_PCT": 82.0,
        "WALK_SHARE_PCT": 19.8,
        "BIKE_TRAIL_MI": 2.8,
        "BIKE_LANE_MI": 4.5,
        "BIKE_COV_PCT": 2.1,
        "BIKE_SHARE_PCT": 1.3,
        "AUTOS_PER_HH": 1.4,
        "VMT_PER_HH": 40,
        "DROVE_ALONE_SHARE_PCT": 52.1,
        "CARPOOL_SHARE_PCT": 2.9,
        "PED_CRASH_RATE": 0.3,
        "BIKE_CRASH_RATE": 0.2,
        "TRANSIT_SHARE_PCT": 27.0,
        "WAH_SHARE_PCT": 7.7,
        "OTHER_SHARE_PCT": 1.1,
    },
    CommunityType.REGIONAL_URBAN_CENTER: {
        "POP_2009": 48783,
        "POP_DENSITY": 3004,
        "EMP_2009": 27294,
        "EMP_DENSITY": 1681,
        "ELDERLY_POP_PCT": 10.4,
        "SIDEWALK_MI": 93.4,
        "SIDEWALK_COV_PCT": 59.0,
        "WALK_SHARE_PCT": 8.7,
        "BIKE_TRAIL_MI": 0.9,
        "BIKE_LANE_MI": 2.0,
        "BIKE_COV_PCT": 1.3,
        "BIKE_SHARE_PCT": 0.2,
        "AUTOS_PER_HH": 1.6,
        "VMT_PER_HH": 47,
        "DROVE_ALONE_SHARE_PCT": 70.2,
        "CARPOOL_SHARE_PCT": 9.9,
        "PED_CRASH_RATE": 0.5,
        "BIKE_CRASH_RATE": 0.2,
        "TRANSIT_SHARE_PCT": 2.3,
        "WAH_SHARE_PCT": 7.7,
        "OTHER_SHARE_PCT": 0.9,
    },
    CommunityType.MATURING_SUBURB: {
        "POP_2009": 20339,
        "POP_DENSITY": 1544,
        "EMP_2009": 10612,
        "EMP_DENSITY": 805,
        "ELDERLY_POP_PCT": 10.6,
        "SIDEWALK_MI": 41.5,
        "SIDEWALK_COV_PCT": 40.0,
        "WALK_SHARE_PCT": 7.7,
        "BIKE_TRAIL_MI": 0.5,
        "BIKE_LANE_MI": 1.5,
        "BIKE_COV_PCT": 1.5,
        "BIKE_SHARE_PCT": 0.2,
        "AUTOS_PER_HH": 1.9,
        "VMT_PER_HH": 62,
        "DROVE_ALONE_SHARE_PCT": 63.8,
        "CARPOOL_SHARE_PCT": 6.5,
        "PED_CRASH_RATE": 0.3,
        "BIKE_CRASH_RATE": 0.2,
        "TRANSIT_SHARE_PCT": 0.6,
        "WAH_SHARE_PCT": 20.4,
        "OTHER_SHARE_PCT": 0.7,
    },
    CommunityType.DEVELOPING_SUBURB: {
        "POP_2009": 10837,
        "POP_DENSITY": 673,
        "EMP_2009": 4621,
        "EMP_DENSITY": 287,
        "ELDERLY_POP_PCT": 7.6,
        "SIDEWALK_MI": 20.7,
        "SIDEWALK_COV_PCT": 28.0,
        "WALK_SHARE_PCT": 5.9,
        "BIKE_TRAIL_MI": 0.0,
        "BIKE_LANE_MI": 1.6,
        "BIKE_COV_PCT": 2.2,
        "BIKE_SHARE_PCT": 0.3,
        "AUTOS_PER_HH": 2.1,
        "VMT_PER_HH": 76,
        "DROVE_ALONE_SHARE_PCT": 63.3,
        "CARPOOL_SHARE_PCT": 6.7,
        "PED_CRASH_RATE": 0.2,
        "BIKE_CRASH_RATE": 0.1,
        "TRANSIT_SHARE_PCT": 0.2,
        "WAH_SHARE_PCT": 22.8,
        "OTHER_SHARE_PCT": 0.8,
    },
}

REGION_AVERAGES: Dict[str, float] = {
    "POP_2009": 31807,
    "POP_DENSITY": 2232,
    "EMP_2009": 17928,
    "EMP_DENSITY": 1287,
    "ELDERLY_POP_PCT": 9.60,
    "SIDEWALK_MI": 55.40,
    "SIDEWALK_COV_PCT": 50.00,
    "WALK_SHARE_PCT": 14.78,
    "BIKE_TRAIL_MI": 3.70,
    "BIKE_LANE_MI": 2.0,
    "BIKE_COV_PCT": 1.90,
    "BIKE_SHARE_PCT": 0.87,
    "AUTOS_PER_HH": 1.6,
    "VMT_PER_HH": 47,
    "TRANSIT_SHARE_PCT": 16.19,
    "DROVE_ALONE_SHARE_PCT": 48.28,
    "CARPOOL_SHARE_PCT": 7.85,
    "WAH_SHARE_PCT": 11.05,
    "OTHER_SHARE_PCT": 0.97,
    "PED_CRASH_RATE": 0.4,
    "BIKE_CRASH_RATE": 0.2,
    "HOUSING_COSTS": 17003,
    "TRANSPORTATION_COSTS": 10229,
    "H_PLUS_T_COSTS": 27232,
}


class ReferenceDataStore:
    """Immutable lookup of community-type and region-wide averages."""

    REGION_NAME = "Regional Average"

    def __init__(
        self,
        community_types: Optional[Mapping[CommunityType, Mapping[str, float]]] = None,
        region: Optional[Mapping[str, float]] = None,
    ):
        if community_types is None:
            community_types = COMMUNITY_TYPE_AVERAGES
        if region is None:
            region = REGION_AVERAGES

        self._profiles: Dict[CommunityType, ReferenceProfile] = {
            ctype: ReferenceProfile(name=ctype.label, averages=values)
            for ctype, values in community_types.items()
        }
        self._region = ReferenceProfile(name=self.REGION_NAME, averages=region)
        logger.debug(
            f"📚 Reference data ready: {len(self._profiles)} community types, "
            f"{len(self._region.averages)} regional indicators"
        )

    @property
    def region(self) -> ReferenceProfile:
        return self._region

    def profile_for(self, community_type: Any) -> Optional[ReferenceProfile]:
        """Profile for a community type (enum or raw attribute value)."""
        ctype = (
            community_type
            if isinstance(community_type, CommunityType)
            else CommunityType.parse(community_type)
        )
        if ctype is None:
            return None
        return self._profiles.get(ctype)

    def community_type_average(self, community_type: Any, indicator: str) -> Optional[float]:
        profile = self.profile_for(community_type)
        return profile.get(indicator) if profile else None

    def region_average(self, indicator: str) -> Optional[float]:
        return self._region.get(indicator)
