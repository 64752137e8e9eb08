"""
Entity Catalog

The merged set of towns shown on the map. Each town joins a geometry record
(from the towns TopoJSON) with its indicator record (from the livability CSV)
on ``TOWN_ID``. The catalog is built once per session and never mutated.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import geopandas as gpd
import pandas as pd
from loguru import logger

from .errors import DataLoadError
from .formatter import to_number
from .reference_data import CommunityType

ID_COLUMN = "TOWN_ID"
NAME_COLUMN = "TOWN"
SMALL_SAMPLE_COLUMN = "SMALL_SAMPLE_SIZE"


def to_title_case(text: str) -> str:
    """Capitalize the first letter of each word, lowercase the rest ("NORTH READING" -> "North Reading")."""
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


@dataclass(frozen=True)
class Entity:
    """One town: id, display name, opaque geometry and raw indicator values."""

    entity_id: int
    name: str
    geometry: Any = None
    indicators: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "indicators", MappingProxyType(dict(self.indicators)))

    @property
    def small_sample(self) -> bool:
        return self.indicators.get(SMALL_SAMPLE_COLUMN) == "Y"

    @property
    def community_type(self) -> Optional[CommunityType]:
        return CommunityType.parse(self.indicators.get("COMMUNITY_TYPE"))

    @property
    def has_indicators(self) -> bool:
        return len(self.indicators) > 0


def parse_entity_id(raw: Any) -> Optional[int]:
    """Integer town id from a raw value ("12", 12.0, 12); None if not an integer."""
    number = to_number(raw)
    if number is None or not number.is_integer():
        return None
    return int(number)


class EntityCatalog:
    """Read-only, id-indexed collection of towns in geometry order."""

    def __init__(self, entities: Sequence[Entity], crs: Any = None):
        self._entities: Dict[int, Entity] = {}
        for entity in entities:
            if entity.entity_id in self._entities:
                raise DataLoadError("towns geometry", f"duplicate {ID_COLUMN} {entity.entity_id}")
            self._entities[entity.entity_id] = entity
        self.crs = crs

    def get(self, entity_id: Any) -> Optional[Entity]:
        """Town for an id, or None when the id is unknown or not an integer."""
        parsed = parse_entity_id(entity_id)
        if parsed is None:
            return None
        return self._entities.get(parsed)

    def find_by_name(self, name: str) -> Optional[Entity]:
        wanted = name.strip().lower()
        for entity in self._entities.values():
            if entity.name.lower() == wanted:
                return entity
        return None

    def ids(self) -> List[int]:
        return list(self._entities)

    def options(self) -> List[Tuple[int, str]]:
        """``(town id, name)`` pairs for the town dropdown, alphabetical."""
        return sorted(((e.entity_id, e.name) for e in self), key=lambda option: option[1])

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        """Id, name and geometry of every town, for map renderers."""
        return gpd.GeoDataFrame(
            {
                ID_COLUMN: [e.entity_id for e in self],
                NAME_COLUMN: [e.name for e in self],
            },
            geometry=[e.geometry for e in self],
            crs=self.crs,
        )

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: Any) -> bool:
        return self.get(entity_id) is not None


def _clean_record(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: (None if _is_missing(value) else value) for key, value in record.items()}


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def index_indicator_records(indicators: pd.DataFrame) -> Dict[int, Dict[str, Any]]:
    """
    Index indicator rows by town id.

    Rows whose id is not an integer are skipped with a warning; when an id
    repeats, the last row wins.
    """
    if ID_COLUMN not in indicators.columns:
        raise DataLoadError("indicator table", f"missing {ID_COLUMN} column")

    indexed: Dict[int, Dict[str, Any]] = {}
    skipped = 0
    for record in indicators.to_dict(orient="records"):
        entity_id = parse_entity_id(record.get(ID_COLUMN))
        if entity_id is None:
            skipped += 1
            continue
        if entity_id in indexed:
            logger.warning(f"  ⚠️ Duplicate indicator row for {ID_COLUMN} {entity_id}, keeping last")
        indexed[entity_id] = _clean_record(record)

    if skipped:
        logger.warning(f"  ⚠️ Skipped {skipped} indicator rows without a valid {ID_COLUMN}")
    return indexed


def build_catalog(geometry: gpd.GeoDataFrame, indicators: pd.DataFrame) -> EntityCatalog:
    """
    Join town geometries with their indicator records.

    Args:
        geometry: Town shapes with a ``TOWN_ID`` column
        indicators: Livability indicator table with a ``TOWN_ID`` column

    Returns:
        EntityCatalog in geometry order; towns without an indicator row keep
        empty indicators

    Raises:
        DataLoadError: if either input lacks ``TOWN_ID`` or a geometry record
            has no usable id
    """
    logger.info("🔗 Merging indicator data with town geometries...")

    if ID_COLUMN not in geometry.columns:
        raise DataLoadError("towns geometry", f"missing {ID_COLUMN} property")

    by_id = index_indicator_records(indicators)
    geometry_column = geometry.geometry.name if isinstance(geometry, gpd.GeoDataFrame) else None

    entities = []
    for record in geometry.to_dict(orient="records"):
        entity_id = parse_entity_id(record.get(ID_COLUMN))
        if entity_id is None:
            raise DataLoadError(
                "towns geometry", f"feature with invalid {ID_COLUMN}: {record.get(ID_COLUMN)!r}"
            )

        attributes = by_id.get(entity_id, {})
        raw_name = attributes.get(NAME_COLUMN) or record.get(NAME_COLUMN) or f"Town {entity_id}"
        entities.append(
            Entity(
                entity_id=entity_id,
                name=to_title_case(str(raw_name)),
                geometry=record.get(geometry_column) if geometry_column else None,
                indicators=attributes,
            )
        )

    catalog = EntityCatalog(entities, crs=getattr(geometry, "crs", None))

    unmatched = [e.entity_id for e in catalog if not e.has_indicators]
    logger.success(f"  ✅ Built catalog of {len(catalog):,} towns")
    if unmatched:
        logger.warning(f"  ⚠️ {len(unmatched)} towns without indicator data: {unmatched[:5]}")

    return catalog
