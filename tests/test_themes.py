"""Tests for theme descriptors, threshold classification and the registry."""

import pytest

from livability.errors import ThemeDefinitionError
from livability.tables import REGION_SPECS, TableRegion
from livability.themes import THEMES, ThemeDescriptor, ThemeId, ThemeRegistry, classify


def make_descriptor(**overrides) -> ThemeDescriptor:
    fields = dict(
        theme_id=ThemeId.POP_DENSITY,
        name="Population Density",
        breakpoints=(750, 2000, 5000),
        colors=("#1", "#2", "#3", "#4"),
        legend_labels=("a", "b", "c", "d"),
        description="desc",
        source="src",
        map_alt_text="map",
        legend_alt_text="legend",
        table_region=TableRegion.DEMOGRAPHIC,
        table_row=1,
    )
    fields.update(overrides)
    return ThemeDescriptor(**fields)


@pytest.fixture
def pop_density():
    return ThemeRegistry().get(ThemeId.POP_DENSITY)


@pytest.mark.parametrize(
    "value,bucket",
    [(0, 0), (749, 0), (749.99, 0), (750, 1), (1999, 1), (2000, 2), (4999, 2), (5000, 3), (1e9, 3)],
)
def test_classify_boundaries(pop_density, value, bucket):
    assert classify(pop_density, value) == bucket


def test_classify_is_monotonic(pop_density):
    values = [-10, 0, 500, 750, 751, 1999, 2000, 3000, 5000, 10000]
    buckets = [pop_density.classify(v) for v in values]
    assert buckets == sorted(buckets)


def test_classify_non_numeric_is_none(pop_density):
    assert classify(pop_density, None) is None
    assert classify(pop_density, "abc") is None
    assert pop_density.color_for(None) is None


def test_all_themes_have_k_colors_and_labels():
    registry = ThemeRegistry()
    assert len(registry) == 15
    for descriptor in registry:
        assert len(descriptor.colors) == descriptor.bucket_count
        assert len(descriptor.legend_labels) == descriptor.bucket_count
        assert len(descriptor.legend()) == len(descriptor.breakpoints) + 1


def test_community_type_classifies_category_codes():
    descriptor = ThemeRegistry().get("COMMUNITY_TYPE")
    assert [descriptor.classify(code) for code in (1, 2, 3, 4)] == [0, 1, 2, 3]


def test_breakpoints_must_increase():
    with pytest.raises(ThemeDefinitionError):
        make_descriptor(breakpoints=(750, 750, 5000))


def test_color_count_must_match():
    with pytest.raises(ThemeDefinitionError, match="expected 4 colors"):
        make_descriptor(colors=("#1", "#2", "#3"))


def test_label_count_must_match():
    with pytest.raises(ThemeDefinitionError, match="legend labels"):
        make_descriptor(legend_labels=("a", "b"))


def test_registry_rejects_duplicate_ids():
    with pytest.raises(ThemeDefinitionError, match="duplicate"):
        ThemeRegistry([make_descriptor(), make_descriptor(table_row=3)])


def test_registry_rejects_row_outside_table():
    with pytest.raises(ThemeDefinitionError, match="outside"):
        ThemeRegistry([make_descriptor(table_row=9)])


def test_registry_rejects_shared_row():
    other = make_descriptor(theme_id=ThemeId.EMP_DENSITY)
    with pytest.raises(ThemeDefinitionError, match="already mapped"):
        ThemeRegistry([make_descriptor(), other])


def test_get_accepts_strings_and_rejects_unknown():
    registry = ThemeRegistry()
    assert registry.get("POP_DENSITY").theme_id is ThemeId.POP_DENSITY
    assert registry.get("NOT_A_THEME") is None
    assert registry.get(None) is None
    assert "VMT_PER_HH" in registry


def test_theme_for_row():
    registry = ThemeRegistry()
    assert registry.theme_for_row(TableRegion.DEMOGRAPHIC, 1) is ThemeId.POP_DENSITY
    assert registry.theme_for_row("walk", 2) is ThemeId.WALK_SHARE_PCT
    assert registry.theme_for_row("phs", 1) is ThemeId.BIKE_CRASH_RATE
    # Population and mode share rows have no theme
    assert registry.theme_for_row("demog", 0) is None
    assert registry.theme_for_row("ms", 0) is None
    assert registry.theme_for_row("nowhere", 0) is None


def test_every_row_theme_shows_its_own_indicator():
    registry = ThemeRegistry()
    for spec in REGION_SPECS:
        for index, row in enumerate(spec.rows):
            theme_id = registry.theme_for_row(spec.region, index)
            if theme_id is not None:
                assert theme_id.value == row.indicator


def test_options_follow_registry_order():
    options = ThemeRegistry().options()
    assert options[0] == ("COMMUNITY_TYPE", "Community Type")
    assert [theme_id for theme_id, _ in options] == [d.theme_id.value for d in THEMES]


def test_pointer_text(pop_density):
    assert pop_density.pointer_text == (
        "Population density (residents per sq mi)<br><br>Data from: regional model estimates, 2009"
    )
