"""
Render instructions produced by the controller.

A ``RenderFrame`` is the complete description of what the map, legend and
tables should show for one selection state. Renderers consume frames; they
never read selection state directly.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .selection import SelectionState
from .tables import TableInstruction, TableRegion
from .themes import ThemeId

DEFAULT_MAP_ALT_TEXT = "Map of Boston Region MPO town boundaries"

# Paint priorities for town outlines; higher draws later (on top).
Z_ORDER_BASE = 0
Z_ORDER_SELECTED = 1


@dataclass(frozen=True)
class RenderStyle:
    """Colors and stroke widths used when no theme value decides the look."""

    default_fill: str = "#ffffff"
    no_data_fill: str = "#d9d9d9"
    fill_opacity: float = 0.7
    stroke: str = "#000000"
    stroke_width: float = 1.0
    selected_stroke: str = "#ff0000"
    selected_stroke_width: float = 4.0


@dataclass(frozen=True)
class FillInstruction:
    entity_id: int
    color: str
    bucket: Optional[int] = None


@dataclass(frozen=True)
class OutlineInstruction:
    entity_id: int
    stroke: str
    stroke_width: float
    z_order: int = Z_ORDER_BASE


@dataclass(frozen=True)
class LegendEntry:
    color: str
    label: str


@dataclass(frozen=True)
class LegendInstruction:
    title: str
    entries: Tuple[LegendEntry, ...]
    pointer_text: str
    alt_text: str


@dataclass(frozen=True)
class HighlightInstruction:
    """The table row emphasized for the active theme."""

    theme_id: ThemeId
    region: TableRegion
    row_index: int


@dataclass(frozen=True)
class RenderFrame:
    """
    Everything the renderers need for one selection state.

    ``sequence`` and ``action`` identify the transition that produced the
    frame and are excluded from equality, so two frames compare equal exactly
    when they would draw the same picture.
    """

    state: SelectionState
    fills: Tuple[FillInstruction, ...]
    outlines: Tuple[OutlineInstruction, ...]
    legend: Optional[LegendInstruction]
    tables: Tuple[TableInstruction, ...]
    highlight: Optional[HighlightInstruction]
    active_tab: Optional[TableRegion]
    map_alt_text: str = DEFAULT_MAP_ALT_TEXT
    show_small_sample_warning: bool = False
    sequence: int = field(default=0, compare=False)
    action: str = field(default="render", compare=False)

    def table(self, region: TableRegion) -> Optional[TableInstruction]:
        for table in self.tables:
            if table.region == region:
                return table
        return None

    def fill_for(self, entity_id: int) -> Optional[FillInstruction]:
        for fill in self.fills:
            if fill.entity_id == entity_id:
                return fill
        return None

    def paint_order(self) -> Tuple[OutlineInstruction, ...]:
        """Outlines sorted so higher paint priority draws last."""
        return tuple(sorted(self.outlines, key=lambda outline: outline.z_order))
