"""
Livable Communities data browser core.

Builds the town catalog, theme registry and reference averages, and keeps map
fills, legend and data tables synchronized with a single selection state:

    from livability import SelectionController, load_sources

    sources = load_sources("towns.json", "livability.csv")
    controller = SelectionController()
    controller.load(sources.catalog)
    frame = controller.select_theme("POP_DENSITY")
"""

from .catalog import Entity, EntityCatalog, build_catalog
from .controller import SelectionController, compose_frame
from .errors import (
    BrowserError,
    DataLoadError,
    NotReadyError,
    ThemeDefinitionError,
    UnknownEntityError,
    UnknownThemeError,
)
from .formatter import format_value
from .instructions import RenderFrame, RenderStyle
from .loader import LoadedSources, load_sources
from .reference_data import CommunityType, ReferenceDataStore
from .selection import SelectionState
from .tables import TableRegion
from .themes import ThemeDescriptor, ThemeId, ThemeRegistry, classify

__version__ = "0.1.0"

__all__ = [
    "BrowserError",
    "CommunityType",
    "DataLoadError",
    "Entity",
    "EntityCatalog",
    "LoadedSources",
    "NotReadyError",
    "ReferenceDataStore",
    "RenderFrame",
    "RenderStyle",
    "SelectionController",
    "SelectionState",
    "TableRegion",
    "ThemeDefinitionError",
    "ThemeDescriptor",
    "ThemeId",
    "ThemeRegistry",
    "UnknownEntityError",
    "UnknownThemeError",
    "build_catalog",
    "classify",
    "compose_frame",
    "format_value",
    "load_sources",
]
