"""
Markdown report of a render frame.

Writes the selected town's six tables plus the active theme's legend, the
same content the browser shows beside the map.
"""

import time
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from loguru import logger

from .catalog import EntityCatalog
from .instructions import RenderFrame
from .tables import TableInstruction

SMALL_SAMPLE_NOTE = (
    "\\* Small sample size: the resident worker walk and bicycle shares for this "
    "municipality are based on few survey responses and should be used with caution."
)


def table_to_dataframe(table: TableInstruction) -> pd.DataFrame:
    """Rows of a table instruction as a DataFrame; the active theme's row is bolded."""
    records = []
    for row in table.rows:
        values = list(row.as_tuple())
        if row.emphasized:
            values = [f"**{value}**" for value in values]
        records.append(values)
    return pd.DataFrame(records, columns=list(table.headers))


def render_markdown(
    frame: RenderFrame, catalog: Optional[EntityCatalog] = None, title: Optional[str] = None
) -> str:
    """Markdown document for one frame."""
    lines: List[str] = [f"# {title or 'Livable Communities Data Browser'}", ""]

    entity = None
    if catalog is not None and frame.state.entity_id is not None:
        entity = catalog.get(frame.state.entity_id)
    lines.append(f"- **Town**: {entity.name if entity else 'none selected'}")
    lines.append(f"- **Theme**: {frame.legend.title if frame.legend else 'none selected'}")
    lines.append(f"- **Map**: {frame.map_alt_text}")
    lines.append("")

    if frame.legend is not None:
        lines.append(f"## Legend: {frame.legend.title}")
        lines.append("")
        legend_df = pd.DataFrame(
            [(entry.color, entry.label) for entry in frame.legend.entries],
            columns=["Color", "Range"],
        )
        lines.append(legend_df.to_markdown(index=False))
        lines.append("")
        lines.append(frame.legend.pointer_text.replace("<br><br>", " "))
        lines.append("")

    for table in frame.tables:
        marker = " (active)" if table.region == frame.active_tab else ""
        lines.append(f"## {table.caption}{marker}")
        lines.append("")
        lines.append(table_to_dataframe(table).to_markdown(index=False))
        lines.append("")

    if frame.show_small_sample_warning:
        lines.append(SMALL_SAMPLE_NOTE)
        lines.append("")

    lines.append("---")
    lines.append(f"*Report generated on {time.strftime('%Y-%m-%d %H:%M:%S')}*")
    lines.append("")
    return "\n".join(lines)


def write_report(
    frame: RenderFrame,
    output_path: Union[str, Path],
    catalog: Optional[EntityCatalog] = None,
    title: Optional[str] = None,
) -> Path:
    """Write ``render_markdown`` output to a file and return its path."""
    output_path = Path(output_path)
    logger.info("📄 Generating table report...")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_markdown(frame, catalog, title))

    logger.success(f"  ✅ Report saved: {output_path}")
    return output_path
