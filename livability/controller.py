"""
Synchronization Controller

Owns the selection state and keeps the map, legend and tables consistent with
it. Every user action goes through ``select_entity`` or ``select_theme``
(map clicks and table-row clicks are thin wrappers). An action is validated
before anything changes; on success the controller composes a fresh
``RenderFrame`` from the new state and hands it to every registered sink
before returning, so frame N is always delivered before transition N+1 starts.

Actions that arrive before the data load has completed are rejected with
``NotReadyError`` and leave the state untouched.
"""

from dataclasses import replace
from typing import Any, Callable, List, Optional

from loguru import logger

from .catalog import EntityCatalog
from .errors import DataLoadError, NotReadyError, UnknownEntityError, UnknownThemeError
from .instructions import (
    DEFAULT_MAP_ALT_TEXT,
    Z_ORDER_BASE,
    Z_ORDER_SELECTED,
    FillInstruction,
    HighlightInstruction,
    LegendEntry,
    LegendInstruction,
    OutlineInstruction,
    RenderFrame,
    RenderStyle,
)
from .reference_data import ReferenceDataStore
from .selection import SelectionState
from .tables import REGION_SPECS, build_table
from .themes import ThemeRegistry

RenderSink = Callable[[RenderFrame], None]


def compose_frame(
    state: SelectionState,
    catalog: EntityCatalog,
    registry: ThemeRegistry,
    reference: ReferenceDataStore,
    style: RenderStyle,
) -> RenderFrame:
    """
    Derive the full render output for a selection state.

    Pure: the same inputs always give an equal frame, so redrawing an
    unchanged state is harmless.
    """
    theme = registry.get(state.theme_id) if state.theme_id is not None else None
    entity = catalog.get(state.entity_id) if state.entity_id is not None else None

    # Map fills
    fills = []
    for town in catalog:
        if theme is None:
            fills.append(FillInstruction(town.entity_id, style.default_fill))
            continue
        bucket = theme.classify(town.indicators.get(theme.theme_id.value))
        color = style.no_data_fill if bucket is None else theme.colors[bucket]
        fills.append(FillInstruction(town.entity_id, color, bucket))

    # Map outlines: the selected town is drawn last, in red
    outlines = []
    for town in catalog:
        if entity is not None and town.entity_id == entity.entity_id:
            outlines.append(
                OutlineInstruction(
                    town.entity_id,
                    style.selected_stroke,
                    style.selected_stroke_width,
                    Z_ORDER_SELECTED,
                )
            )
        else:
            outlines.append(
                OutlineInstruction(town.entity_id, style.stroke, style.stroke_width, Z_ORDER_BASE)
            )

    legend = None
    highlight = None
    if theme is not None:
        legend = LegendInstruction(
            title=theme.name,
            entries=tuple(LegendEntry(color, label) for color, label in theme.legend()),
            pointer_text=theme.pointer_text,
            alt_text=theme.legend_alt_text,
        )
        if theme.table_row is not None:
            highlight = HighlightInstruction(theme.theme_id, theme.table_region, theme.table_row)

    # Tables, with clickable rows tagged by theme and the active theme's row emphasized
    tables = []
    if entity is not None:
        for spec in REGION_SPECS:
            table = build_table(spec, entity, reference)
            rows = []
            for index, row in enumerate(table.rows):
                row_theme = registry.theme_for_row(spec.region, index)
                emphasized = (
                    highlight is not None
                    and highlight.region == spec.region
                    and highlight.row_index == index
                )
                rows.append(replace(row, theme_id=row_theme, emphasized=emphasized))
            tables.append(replace(table, rows=tuple(rows)))

    return RenderFrame(
        state=state,
        fills=tuple(fills),
        outlines=tuple(outlines),
        legend=legend,
        tables=tuple(tables),
        highlight=highlight,
        active_tab=theme.table_region if theme is not None else None,
        map_alt_text=theme.map_alt_text if theme is not None else DEFAULT_MAP_ALT_TEXT,
        show_small_sample_warning=entity is not None,
    )


class SelectionController:
    """
    Single owner of ``SelectionState``.

    Usage:
        controller = SelectionController(sinks=[renderer.apply])
        controller.load(catalog)
        controller.select_entity(35)
        controller.select_theme("POP_DENSITY")
    """

    def __init__(
        self,
        registry: Optional[ThemeRegistry] = None,
        reference: Optional[ReferenceDataStore] = None,
        style: Optional[RenderStyle] = None,
        sinks: Optional[List[RenderSink]] = None,
    ):
        self.registry = registry or ThemeRegistry()
        self.reference = reference or ReferenceDataStore()
        self.style = style or RenderStyle()
        self._sinks: List[RenderSink] = list(sinks or [])
        self._state = SelectionState()
        self._catalog: Optional[EntityCatalog] = None
        self._load_error: Optional[DataLoadError] = None
        self._sequence = 0

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def catalog(self) -> Optional[EntityCatalog]:
        return self._catalog

    @property
    def is_ready(self) -> bool:
        return self._catalog is not None

    @property
    def load_error(self) -> Optional[DataLoadError]:
        return self._load_error

    def add_sink(self, sink: RenderSink) -> None:
        self._sinks.append(sink)

    # === Load ===

    def load(self, catalog: EntityCatalog) -> RenderFrame:
        """Accept the loaded catalog and draw the initial (or current) state."""
        if self._load_error is not None:
            raise self._load_error
        if self._catalog is not None:
            logger.warning("⚠️ Replacing an already loaded town catalog")
        self._catalog = catalog
        logger.success(f"✅ Data browser ready with {len(catalog):,} towns")
        return self._publish("load", self._state)

    def fail_load(self, error: DataLoadError) -> None:
        """Record a fatal load failure; the session stays not-ready."""
        self._load_error = error
        logger.critical(f"❌ {error}")

    # === Transitions ===

    def select_entity(self, entity_id: Any) -> RenderFrame:
        """Select a town (dropdown or map click)."""
        catalog = self._require_ready("select_entity")
        entity = catalog.get(entity_id)
        if entity is None:
            error = UnknownEntityError(entity_id)
            logger.warning(f"⚠️ {error}")
            raise error

        frame = self._publish("select_entity", self._state.with_entity(entity.entity_id))
        logger.info(f"🏙️ Selected town: {entity.name} ({entity.entity_id})")
        return frame

    def select_theme(self, theme_id: Any) -> RenderFrame:
        """Activate a map theme (dropdown or table-row click)."""
        self._require_ready("select_theme")
        theme = self.registry.get(theme_id)
        if theme is None:
            error = UnknownThemeError(theme_id)
            logger.warning(f"⚠️ {error}")
            raise error

        frame = self._publish("select_theme", self._state.with_theme(theme.theme_id))
        logger.info(f"🎨 Selected theme: {theme.name}")
        return frame

    def click_map(self, entity_id: Any) -> RenderFrame:
        return self.select_entity(entity_id)

    def click_table_row(self, region: Any, row_index: int) -> Optional[RenderFrame]:
        """
        Select the theme mapped to a table row.

        Rows without a theme (population, employment, mode share, ...) are
        not clickable; the click is ignored and None is returned.
        """
        self._require_ready("click_table_row")
        theme_id = self.registry.theme_for_row(region, row_index)
        if theme_id is None:
            logger.debug(f"Ignoring click on table row {region}:{row_index} without a theme")
            return None
        return self.select_theme(theme_id)

    def render(self) -> RenderFrame:
        """Frame for the current state, without publishing it."""
        catalog = self._require_ready("render")
        return compose_frame(self._state, catalog, self.registry, self.reference, self.style)

    # === Internals ===

    def _require_ready(self, action: str) -> EntityCatalog:
        if self._catalog is None:
            error = NotReadyError(action)
            logger.warning(f"⏳ {error}")
            raise error
        return self._catalog

    def _publish(self, action: str, state: SelectionState) -> RenderFrame:
        # The state is committed only once its frame has been composed.
        catalog = self._require_ready(action)
        frame = compose_frame(state, catalog, self.registry, self.reference, self.style)
        self._state = state
        self._sequence += 1
        frame = replace(frame, sequence=self._sequence, action=action)
        logger.debug(f"🖌️ Frame {frame.sequence} ({action}) to {len(self._sinks)} sinks")
        for sink in self._sinks:
            sink(frame)
        return frame
