"""Tests for the selection controller and frame composition."""

import pytest

from livability.catalog import build_catalog
from livability.controller import SelectionController, compose_frame
from livability.errors import DataLoadError, NotReadyError, UnknownEntityError, UnknownThemeError
from livability.formatter import MISSING_VALUE
from livability.instructions import DEFAULT_MAP_ALT_TEXT, Z_ORDER_BASE, Z_ORDER_SELECTED
from livability.reference_data import ReferenceDataStore
from livability.selection import SelectionState
from livability.tables import TableRegion
from livability.themes import ThemeId, ThemeRegistry


def test_load_publishes_initial_frame(controller, frames):
    assert controller.is_ready
    assert len(frames) == 1
    frame = frames[0]
    assert frame.state.is_empty
    assert frame.action == "load"
    assert frame.legend is None
    assert frame.tables == ()
    assert frame.map_alt_text == DEFAULT_MAP_ALT_TEXT
    assert {fill.color for fill in frame.fills} == {controller.style.default_fill}
    assert all(outline.z_order == Z_ORDER_BASE for outline in frame.outlines)


def test_end_to_end_entity_then_theme(controller, frames):
    controller.select_entity(2)
    frame = controller.select_theme("POP_DENSITY")

    # Fills for every town, classified on population density
    assert [(f.entity_id, f.bucket) for f in frame.fills] == [(1, 3), (2, 2), (3, 1)]
    descriptor = ThemeRegistry().get(ThemeId.POP_DENSITY)
    assert frame.fill_for(2).color == descriptor.colors[2]

    # Legend of len(breakpoints) + 1 entries
    assert len(frame.legend.entries) == len(descriptor.breakpoints) + 1
    assert frame.legend.title == "Population Density"
    assert frame.legend.entries[0].label == "< 750 people per sq mi"

    # Tables for town 2 merged with Maturing Suburb and regional averages
    assert len(frame.tables) == 6
    demog = frame.table(TableRegion.DEMOGRAPHIC)
    assert demog.caption == "Demographic Data for North Reading"
    assert demog.rows[1].as_tuple() == ("Population Density", "2,000", "1,544", "2,232")

    # Highlight and active tab follow the theme
    assert frame.highlight.region is TableRegion.DEMOGRAPHIC
    assert frame.highlight.row_index == 1
    assert [row.emphasized for row in demog.rows] == [False, True, False, False, False]
    assert frame.active_tab is TableRegion.DEMOGRAPHIC
    assert frame.show_small_sample_warning is True

    # Selected outline drawn last
    assert frame.paint_order()[-1].entity_id == 2
    assert frame.paint_order()[-1].z_order == Z_ORDER_SELECTED
    assert frames[-1] is frame


def test_order_independence(catalog):
    first = SelectionController()
    first.load(catalog)
    first.select_entity(2)
    a = first.select_theme("POP_DENSITY")

    second = SelectionController()
    second.load(catalog)
    second.select_theme("POP_DENSITY")
    b = second.select_entity(2)

    assert a == b
    assert a.state == SelectionState(entity_id=2, theme_id=ThemeId.POP_DENSITY)


def test_select_theme_twice_is_identical(controller, frames):
    controller.select_entity(1)
    first = controller.select_theme("WALK_SHARE_PCT")
    second = controller.select_theme("WALK_SHARE_PCT")
    assert first == second
    assert second.sequence == first.sequence + 1
    assert controller.state.theme_id is ThemeId.WALK_SHARE_PCT


def test_select_entity_twice_is_identical(controller):
    assert controller.select_entity(3) == controller.select_entity(3)


def test_unknown_entity_does_not_mutate(controller, frames):
    controller.select_entity(1)
    controller.select_theme("VMT_PER_HH")
    before = controller.state
    delivered = len(frames)

    with pytest.raises(UnknownEntityError) as excinfo:
        controller.select_entity(99)

    assert "dropdown or the map" in excinfo.value.user_message
    assert controller.state == before
    assert len(frames) == delivered


def test_non_finite_community_type_selects_without_averages(towns_gdf, indicators_df):
    indicators_df.loc[indicators_df["TOWN_ID"] == 2, "COMMUNITY_TYPE"] = float("inf")
    frames = []
    controller = SelectionController(sinks=[frames.append])
    controller.load(build_catalog(towns_gdf, indicators_df))

    frame = controller.select_entity(2)

    assert controller.state.entity_id == 2
    assert frames[-1] is frame
    demog = frame.table(TableRegion.DEMOGRAPHIC)
    assert demog.rows[1].entity_value == "2,000"
    assert demog.rows[1].category_average == MISSING_VALUE
    assert demog.rows[1].region_average == "2,232"


def test_unknown_theme_does_not_mutate(controller, frames):
    controller.select_entity(1)
    before = controller.state
    delivered = len(frames)

    with pytest.raises(UnknownThemeError):
        controller.select_theme("NOT_A_THEME")

    assert controller.state == before
    assert len(frames) == delivered


def test_actions_before_load_are_rejected(catalog):
    frames = []
    controller = SelectionController(sinks=[frames.append])

    with pytest.raises(NotReadyError):
        controller.select_entity(1)
    with pytest.raises(NotReadyError):
        controller.select_theme("POP_DENSITY")
    with pytest.raises(NotReadyError):
        controller.click_table_row("demog", 1)

    assert controller.state.is_empty
    assert frames == []

    controller.load(catalog)
    assert controller.select_entity(1).state.entity_id == 1


def test_failed_load_keeps_session_not_ready(catalog):
    controller = SelectionController()
    error = DataLoadError("towns geometry", "file not found")
    controller.fail_load(error)

    assert controller.load_error is error
    assert not controller.is_ready
    with pytest.raises(NotReadyError):
        controller.select_theme("POP_DENSITY")
    with pytest.raises(DataLoadError):
        controller.load(catalog)


def test_table_row_click_selects_theme(controller):
    controller.select_entity(2)
    frame = controller.click_table_row("walk", 2)
    assert frame.state.theme_id is ThemeId.WALK_SHARE_PCT
    assert frame.active_tab is TableRegion.WALK
    assert frame.table(TableRegion.WALK).rows[2].emphasized


def test_table_row_without_theme_is_ignored(controller, frames):
    controller.select_theme("POP_DENSITY")
    delivered = len(frames)
    assert controller.click_table_row("ms", 0) is None
    assert controller.state.theme_id is ThemeId.POP_DENSITY
    assert len(frames) == delivered


def test_rows_carry_their_theme(controller):
    frame = controller.select_entity(1)
    demog = frame.table(TableRegion.DEMOGRAPHIC)
    assert demog.rows[0].theme_id is None
    assert demog.rows[1].theme_id is ThemeId.POP_DENSITY
    assert all(row.theme_id is None for row in frame.table(TableRegion.MODE_SHARE).rows)


def test_map_click_selects_entity(controller):
    frame = controller.click_map("3")
    assert frame.state.entity_id == 3
    selected = [o for o in frame.outlines if o.z_order == Z_ORDER_SELECTED]
    assert [o.entity_id for o in selected] == [3]
    assert selected[0].stroke == controller.style.selected_stroke


def test_changing_entity_moves_outline(controller):
    controller.select_entity(1)
    frame = controller.select_entity(2)
    selected = [o.entity_id for o in frame.outlines if o.z_order == Z_ORDER_SELECTED]
    assert selected == [2]


def test_missing_value_gets_no_data_fill(controller):
    frame = controller.select_theme("WALK_SHARE_PCT")
    fill = frame.fill_for(3)
    assert fill.bucket is None
    assert fill.color == controller.style.no_data_fill


def test_theme_without_entity_has_no_tables(controller):
    frame = controller.select_theme("BIKE_CRASH_RATE")
    assert frame.tables == ()
    assert frame.show_small_sample_warning is False
    assert frame.active_tab is TableRegion.PUBLIC_HEALTH
    assert frame.legend.alt_text.startswith("Number of crashes involving bicyclists")
    assert "bicycle crash rate" in frame.map_alt_text


def test_community_type_theme_has_no_row_highlight(controller):
    controller.select_entity(1)
    frame = controller.select_theme("COMMUNITY_TYPE")
    assert frame.highlight is None
    assert frame.active_tab is TableRegion.DEMOGRAPHIC
    assert not any(row.emphasized for table in frame.tables for row in table.rows)


def test_frames_are_delivered_in_order(controller, frames):
    controller.select_entity(1)
    controller.select_theme("POP_DENSITY")
    controller.select_entity(2)
    assert [f.sequence for f in frames] == [1, 2, 3, 4]
    assert [f.action for f in frames] == ["load", "select_entity", "select_theme", "select_entity"]


def test_compose_frame_is_pure(catalog):
    args = (
        SelectionState(entity_id=1, theme_id=ThemeId.AUTOS_PER_HH),
        catalog,
        ThemeRegistry(),
        ReferenceDataStore(),
        SelectionController().style,
    )
    assert compose_frame(*args) == compose_frame(*args)
