"""
Folium choropleth renderer.

A render sink: ``FoliumMapRenderer.apply`` receives every frame the
controller publishes and keeps the latest one; ``build_map`` turns a frame
into a ``folium.Map`` with the state outline underneath, towns filled per the
frame's fill instructions, outlines drawn in paint order (selected town last)
and an HTML legend.
"""

import html
from pathlib import Path
from typing import Dict, List, Optional, Union

import folium
import geopandas as gpd
from loguru import logger

from .catalog import ID_COLUMN, NAME_COLUMN, EntityCatalog
from .instructions import Z_ORDER_BASE, LegendInstruction, RenderFrame, RenderStyle

DEFAULT_CENTER = [42.36, -71.06]


def legend_html(legend: LegendInstruction) -> str:
    """Fixed-position legend box with one swatch per bucket, lowest first."""
    rows = "".join(
        f'<div><span style="display:inline-block;width:18px;height:12px;'
        f'margin-right:6px;border:1px solid #666;background:{html.escape(entry.color)}">'
        f"</span>{html.escape(entry.label)}</div>"
        for entry in legend.entries
    )
    # Description and source are plain text; only the break between them is markup.
    pointer = "<br><br>".join(
        html.escape(part) for part in legend.pointer_text.split("<br><br>")
    )
    return f"""
    <div id="legend" role="img" aria-label="{html.escape(legend.alt_text)}"
         style="position:fixed;bottom:30px;left:30px;z-index:9999;background:white;
                border:2px solid #333333;border-radius:5px;padding:8px;
                font-family:Arial, sans-serif;font-size:12px;">
      <b>{html.escape(legend.title)}</b>
      {rows}
      <div style="margin-top:6px;max-width:240px;color:#555555;">{pointer}</div>
    </div>
    """


class FoliumMapRenderer:
    """
    Render sink producing folium maps.

    Usage:
        renderer = FoliumMapRenderer(catalog, outline=sources.outline)
        controller = SelectionController(sinks=[renderer.apply])
        ...
        renderer.save("output/map.html")
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        outline: Optional[gpd.GeoDataFrame] = None,
        style: Optional[RenderStyle] = None,
        tiles: str = "CartoDB Positron",
        zoom_start: int = 9,
        outline_fill: str = "#e8e8e8",
    ):
        self.catalog = catalog
        self.outline = outline
        self.style = style or RenderStyle()
        self.tiles = tiles
        self.zoom_start = zoom_start
        self.outline_fill = outline_fill
        self.frames_received = 0
        self.last_frame: Optional[RenderFrame] = None
        self._towns = catalog.to_geodataframe()

    def apply(self, frame: RenderFrame) -> None:
        self.frames_received += 1
        self.last_frame = frame
        logger.trace(f"Folium renderer received frame {frame.sequence} ({frame.action})")

    def _center(self) -> List[float]:
        if len(self._towns) == 0:
            return list(DEFAULT_CENTER)
        minx, miny, maxx, maxy = self._towns.total_bounds
        return [(miny + maxy) / 2, (minx + maxx) / 2]

    def build_map(self, frame: Optional[RenderFrame] = None) -> folium.Map:
        """Folium map for a frame (default: the latest received)."""
        frame = frame or self.last_frame
        if frame is None:
            raise ValueError("No frame to render")

        fills: Dict[int, str] = {fill.entity_id: fill.color for fill in frame.fills}
        strokes = {outline.entity_id: outline for outline in frame.outlines}
        style = self.style

        m = folium.Map(
            location=self._center(),
            zoom_start=self.zoom_start,
            tiles=self.tiles,
            prefer_canvas=True,
        )

        # State outline context layer, drawn first so towns sit on top
        if self.outline is not None:
            outline_fill = self.outline_fill
            folium.GeoJson(
                data=self.outline.__geo_interface__,
                name="Massachusetts",
                style_function=lambda feature: {
                    "fillColor": outline_fill,
                    "color": "#999999",
                    "weight": 1,
                    "fillOpacity": 1,
                },
            ).add_to(m)

        def town_style(feature):
            town_id = int(feature["properties"][ID_COLUMN])
            outline = strokes.get(town_id)
            if outline is None or outline.z_order != Z_ORDER_BASE:
                stroke, width = style.stroke, style.stroke_width
            else:
                stroke, width = outline.stroke, outline.stroke_width
            return {
                "fillColor": fills.get(town_id, style.default_fill),
                "fillOpacity": style.fill_opacity,
                "color": stroke,
                "weight": width,
            }

        folium.GeoJson(
            data=self._towns.__geo_interface__,
            name=frame.legend.title if frame.legend else "Towns",
            style_function=town_style,
            tooltip=folium.GeoJsonTooltip(
                fields=[NAME_COLUMN],
                aliases=["Town:"],
                labels=False,
                sticky=False,
            ),
        ).add_to(m)

        # Raised outlines (the selected town) in paint order, after all fills
        for outline in frame.paint_order():
            if outline.z_order == Z_ORDER_BASE:
                continue
            selected = self._towns[self._towns[ID_COLUMN] == outline.entity_id]
            if len(selected) == 0:
                logger.warning(f"  ⚠️ No geometry for outlined town {outline.entity_id}")
                continue
            folium.GeoJson(
                data=selected.__geo_interface__,
                name="Selected town",
                style_function=lambda feature, o=outline: {
                    "color": o.stroke,
                    "weight": o.stroke_width,
                    "fillOpacity": 0,
                },
            ).add_to(m)

        if frame.legend is not None:
            m.get_root().html.add_child(folium.Element(legend_html(frame.legend)))

        title_html = f"""
        <h3 align="center" style="font-size:16px; color: #333333; margin-top:10px;">
        <b>{html.escape(frame.map_alt_text)}</b>
        </h3>
        """
        m.get_root().html.add_child(folium.Element(title_html))
        folium.LayerControl(collapsed=True).add_to(m)

        return m

    def save(self, output_path: Union[str, Path], frame: Optional[RenderFrame] = None) -> Path:
        output_path = Path(output_path)
        logger.info("🗺️ Creating interactive choropleth map...")

        m = self.build_map(frame)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        m.save(str(output_path))

        logger.success(f"  ✅ Interactive map saved: {output_path}")
        return output_path
