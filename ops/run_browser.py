#!/usr/bin/env python3
"""
Livable Communities Data Browser CLI

Loads the town geometries, livability indicators and state outline, then
drives the selection controller from the command line: render a town/theme
combination to an interactive map plus a markdown table report, replay a
scripted sequence of user actions, or list the available towns and themes.

Usage:
    livability-browser render --town Boston --theme POP_DENSITY
    livability-browser replay actions.txt
    livability-browser themes
    livability-browser towns
    livability-browser download-url --host lindalino

    # Verbose logging:
    livability-browser --verbose render --town 35
"""

import os
import sys
import traceback
from pathlib import Path
from typing import List, Optional, Tuple

import click
import yaml  # type: ignore[import-untyped]
from loguru import logger

from livability.catalog import EntityCatalog, parse_entity_id
from livability.controller import SelectionController
from livability.download import download_url_from_config
from livability.errors import DataLoadError, UnknownEntityError, UnknownThemeError
from livability.instructions import RenderFrame, RenderStyle
from livability.loader import LoadedSources, load_sources_from_config
from livability.render_folium import FoliumMapRenderer
from livability.report import write_report
from livability.themes import ThemeRegistry
from ops.config_loader import Config

MAP_FILENAME = "livability_map.html"
REPORT_FILENAME = "livability_report.md"


class BrowserContext:
    """Click context object: the loaded config plus the lazily started session."""

    def __init__(self, config: Config):
        self.config = config
        self.sources: Optional[LoadedSources] = None
        self.controller: Optional[SelectionController] = None
        self.renderer: Optional[FoliumMapRenderer] = None

    def start_session(self) -> SelectionController:
        """Load the data sources and hand the catalog to a new controller."""
        controller = SelectionController(style=style_from_config(self.config))
        try:
            self.sources = load_sources_from_config(self.config)
        except DataLoadError as e:
            controller.fail_load(e)
            raise

        self.renderer = FoliumMapRenderer(
            self.sources.catalog,
            outline=self.sources.outline,
            style=controller.style,
            tiles=self.config.get_visualization_setting("tiles"),
            zoom_start=self.config.get_visualization_setting("zoom_start"),
            outline_fill=self.config.get_visualization_setting("outline_fill"),
        )
        controller.add_sink(self.renderer.apply)
        controller.load(self.sources.catalog)
        self.controller = controller
        return controller

    def write_outputs(self, output_dir: Path) -> Tuple[Path, Path]:
        """Save the latest frame as an HTML map and a markdown report."""
        if self.renderer is None or self.sources is None:
            raise click.ClickException("No data loaded; nothing to write")
        frame = self.renderer.last_frame
        map_path = self.renderer.save(output_dir / MAP_FILENAME)
        report_path = write_report(
            frame,
            output_dir / REPORT_FILENAME,
            catalog=self.sources.catalog,
            title=self.config.get("project_name"),
        )
        return map_path, report_path


def style_from_config(config: Config) -> RenderStyle:
    """Map styling from the ``visualization`` section."""
    setting = config.get_visualization_setting
    return RenderStyle(
        default_fill=setting("default_fill"),
        no_data_fill=setting("no_data_fill"),
        fill_opacity=float(setting("fill_opacity")),
        stroke=setting("stroke"),
        stroke_width=float(setting("stroke_width")),
        selected_stroke=setting("selected_stroke"),
        selected_stroke_width=float(setting("selected_stroke_width")),
    )


def select_town(controller: SelectionController, town: str) -> RenderFrame:
    """Select a town by id ("35") or by name ("Boston")."""
    if parse_entity_id(town) is not None:
        return controller.select_entity(town)

    catalog: EntityCatalog = controller.catalog
    entity = catalog.find_by_name(town) if catalog is not None else None
    if entity is None:
        error = UnknownEntityError(town)
        logger.warning(f"⚠️ {error}")
        raise error
    return controller.select_entity(entity.entity_id)


def describe_frame(frame: RenderFrame, catalog: Optional[EntityCatalog]) -> str:
    entity = None
    if catalog is not None and frame.state.entity_id is not None:
        entity = catalog.get(frame.state.entity_id)
    theme = frame.state.theme_id.value if frame.state.theme_id else "-"
    tab = frame.active_tab.value if frame.active_tab else "-"
    town = entity.name if entity else "-"
    return f"{frame.sequence}\t{frame.action}\ttown={town}\ttheme={theme}\ttab={tab}"


def parse_action_line(line: str, line_number: int) -> Tuple[str, List[str]]:
    """Split one replay line into ``(verb, args)`` and check the argument count."""
    parts = line.split()
    verb, args = parts[0].lower(), parts[1:]
    expected = {"town": 1, "theme": 1, "click": 1, "row": 2}
    if verb not in expected:
        raise click.ClickException(f"Line {line_number}: unknown action '{verb}'")
    if verb == "town" and args:
        # Town names may contain spaces ("North Reading")
        args = [" ".join(args)]
    if len(args) != expected[verb]:
        raise click.ClickException(
            f"Line {line_number}: '{verb}' expects {expected[verb]} argument(s)"
        )
    if verb == "row" and not args[1].lstrip("-").isdigit():
        raise click.ClickException(f"Line {line_number}: row index must be an integer")
    return verb, args


# Main CLI group
@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config.yaml (default: $LIVABILITY_CONFIG_PATH, ./config.yaml, ops/config.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable DEBUG level logging")
@click.option(
    "--trace", is_flag=True, help="Enable TRACE level logging for deep debugging (maximum detail)"
)
@click.option("--log-file", type=str, help="Also log to specified file")
@click.pass_context
def cli(ctx, config_file, verbose, trace, log_file):
    """
    Livable Communities Data Browser

    Choropleth map of Boston Region MPO towns with synchronized data tables.

    \b
    Examples:
      livability-browser render --town Boston --theme POP_DENSITY
      livability-browser replay actions.txt
      livability-browser --trace towns
    """
    setup_logging(verbose=verbose, enable_trace=trace)

    if log_file:
        log_level = "TRACE" if trace else ("DEBUG" if verbose else "INFO")
        logger.add(
            log_file,
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation="10 MB",  # Rotate when file gets large
            retention="7 days",  # Keep logs for a week
        )
        logger.info(f"📄 Also logging to file: {log_file}")

    try:
        config = Config(config_file)
        logger.debug(f"📋 Project: {config.get('project_name')}")
        config.print_config_summary()
    except (FileNotFoundError, ValueError, OSError, yaml.YAMLError) as e:
        logger.critical(f"Configuration error: {e}")
        logger.info("💡 Make sure config.yaml exists and is valid")
        ctx.exit(1)

    ctx.obj = BrowserContext(config)


@cli.command()
@click.option("--town", help="Town id or name to select")
@click.option("--theme", help="Theme id to map (see the 'themes' command)")
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False),
    help="Directory for the map and report (default: directories.output)",
)
@click.pass_obj
def render(obj: BrowserContext, town, theme, output_dir):
    """Render a town/theme selection to an HTML map and a markdown report."""
    logger.info("🗺️ Livable Communities Data Browser")
    try:
        controller = obj.start_session()
        if town:
            select_town(controller, town)
        if theme:
            controller.select_theme(theme)

        out = Path(output_dir) if output_dir else obj.config.get_output_dir()
        map_path, report_path = obj.write_outputs(out)
    except DataLoadError as e:
        handle_critical_error(e, "Data load")
        click.echo(e.user_message, err=True)
        sys.exit(1)
    except (UnknownEntityError, UnknownThemeError) as e:
        click.echo(e.user_message, err=True)
        sys.exit(1)

    click.echo(f"Map: {map_path}")
    click.echo(f"Report: {report_path}")


@cli.command()
@click.argument("actions_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False),
    help="Also write the final map and report to this directory",
)
@click.pass_obj
def replay(obj: BrowserContext, actions_file, output_dir):
    """
    Apply a scripted sequence of user actions.

    \b
    One action per line; blank lines and '#' comments are ignored:
      town <id or name>      dropdown selection
      click <id>             map click
      theme <theme id>       dropdown selection
      row <region> <index>   table row click (region: demog, walk, bike, auto, phs, ms)
    """
    try:
        controller = obj.start_session()
    except DataLoadError as e:
        handle_critical_error(e, "Data load")
        click.echo(e.user_message, err=True)
        sys.exit(1)

    catalog = controller.catalog
    click.echo(describe_frame(obj.renderer.last_frame, catalog))

    rejected = 0
    with open(actions_file, "r", encoding="utf-8") as f:
        for line_number, raw_line in enumerate(f, start=1):
            line = raw_line.split("#", 1)[0].strip()
            if not line:
                continue
            verb, args = parse_action_line(line, line_number)
            try:
                if verb == "town":
                    frame = select_town(controller, args[0])
                elif verb == "click":
                    frame = controller.click_map(args[0])
                elif verb == "theme":
                    frame = controller.select_theme(args[0])
                else:
                    frame = controller.click_table_row(args[0], int(args[1]))
            except (UnknownEntityError, UnknownThemeError) as e:
                rejected += 1
                click.echo(f"rejected\t{line}\t{e.user_message}")
                continue

            if frame is None:
                click.echo(f"ignored\t{line}")
            else:
                click.echo(describe_frame(frame, catalog))

    if rejected:
        logger.warning(f"⚠️ {rejected} action(s) rejected")
    logger.success(f"✅ Replayed actions from {actions_file}")

    if output_dir:
        obj.write_outputs(Path(output_dir))


@cli.command()
def themes():
    """List the available map themes."""
    for descriptor in ThemeRegistry():
        click.echo(
            f"{descriptor.theme_id.value}\t{descriptor.name}\t{descriptor.table_region.value}"
        )


@cli.command()
@click.pass_obj
def towns(obj: BrowserContext):
    """List the towns in the loaded catalog, alphabetically."""
    try:
        controller = obj.start_session()
    except DataLoadError as e:
        handle_critical_error(e, "Data load")
        click.echo(e.user_message, err=True)
        sys.exit(1)

    for town_id, name in controller.catalog.options():
        click.echo(f"{town_id}\t{name}")


@cli.command("download-url")
@click.option("--host", help="Host name the browser is served from (selects the server root)")
@click.pass_obj
def download_url(obj: BrowserContext, host):
    """Print the WFS link for downloading the full indicator table as CSV."""
    click.echo(download_url_from_config(obj.config, hostname=host))


def setup_logging(verbose: bool = False, enable_trace: bool = False) -> None:
    """
    Configure loguru logging with appropriate levels.

    Args:
        verbose: If True, set log level to DEBUG
        enable_trace: If True, enable TRACE level logging for deep debugging
    """
    logger.remove()

    if enable_trace:
        log_level = "TRACE"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    elif verbose:
        log_level = "DEBUG"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    else:
        log_level = "INFO"
        log_format = (
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=log_format,
        level=log_level,
        colorize=True,
        backtrace=enable_trace,
        diagnose=enable_trace,
    )

    os.environ["LOGURU_LEVEL"] = log_level

    if verbose:
        logger.debug("🔧 Verbose logging enabled (DEBUG level)")
    if enable_trace:
        logger.trace("🔍 Trace logging enabled - maximum detail mode")


def handle_critical_error(error: BaseException, context: str = "") -> None:
    """
    Log a fatal error, with the full traceback in TRACE mode.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
    """
    enable_trace = os.environ.get("LOGURU_LEVEL", "INFO") == "TRACE"

    if enable_trace:
        logger.trace(f"Error context: {context}")
        logger.trace(f"Error type: {type(error).__name__}")
        logger.trace(f"Error args: {error.args}")
        logger.trace("Full traceback:")
        logger.trace(traceback.format_exc())

    logger.critical(f"💥 CRITICAL ERROR: {context}")
    logger.critical(f"Exception: {type(error).__name__}: {error}")

    if not enable_trace:
        logger.info("💡 For detailed debugging, run with --trace flag")


if __name__ == "__main__":
    cli()
