"""Tests for reference averages and table population."""

from livability.catalog import Entity
from livability.formatter import MISSING_VALUE
from livability.reference_data import CommunityType, ReferenceDataStore
from livability.tables import COLUMN_HEADERS, REGION_SPECS, TableRegion, build_table, region_spec


def test_reference_lookups():
    reference = ReferenceDataStore()
    assert reference.community_type_average(CommunityType.INNER_CORE, "POP_DENSITY") == 9751
    assert reference.region_average("WALK_SHARE_PCT") == 14.78
    assert reference.region_average("NOT_AN_INDICATOR") is None
    assert reference.profile_for(None) is None


def test_community_type_parse():
    assert CommunityType.parse("3") is CommunityType.MATURING_SUBURB
    assert CommunityType.parse(2.0) is CommunityType.REGIONAL_URBAN_CENTER
    assert CommunityType.parse(7) is None
    assert CommunityType.parse(None) is None
    assert CommunityType.parse(float("inf")) is None
    assert CommunityType.parse("n/a") is None
    assert CommunityType.INNER_CORE.label == "Inner Core"


def test_region_row_counts():
    counts = {spec.region: len(spec.rows) for spec in REGION_SPECS}
    assert counts == {
        TableRegion.DEMOGRAPHIC: 5,
        TableRegion.WALK: 3,
        TableRegion.BIKE: 4,
        TableRegion.AUTO: 4,
        TableRegion.PUBLIC_HEALTH: 2,
        TableRegion.MODE_SHARE: 7,
    }


def test_demographic_table_merges_averages(catalog):
    table = build_table(region_spec(TableRegion.DEMOGRAPHIC), catalog.get(2), ReferenceDataStore())
    assert table.caption == "Demographic Data for North Reading"
    assert table.headers == COLUMN_HEADERS
    assert [row.as_tuple() for row in table.rows] == [
        ("Population", "14,892", "20,339", "31,807"),
        ("Population Density", "2,000", "1,544", "2,232"),
        ("Employment", "6,040", "10,612", "17,928"),
        ("Employment Density", "451", "805", "1,287"),
        ("Elderly Population Percentage", "11.2%", "10.6%", "9.6%"),
    ]


def test_small_sample_suffix_only_on_town_resident_shares(catalog):
    reference = ReferenceDataStore()
    town = catalog.get(2)

    walk = build_table(region_spec(TableRegion.WALK), town, reference)
    assert walk.rows[2].as_tuple() == ("Resident Worker Walk Share", "19.8% *", "7.7%", "14.8%")
    assert walk.rows[1].entity_value == "44.7%"

    bike = build_table(region_spec(TableRegion.BIKE), town, reference)
    assert bike.rows[3].entity_value == "0.3% *"

    mode_share = build_table(region_spec(TableRegion.MODE_SHARE), town, reference)
    walk_row = [row for row in mode_share.rows if row.label == "Walk"][0]
    assert walk_row.entity_value == "19.8%"


def test_missing_values_and_unknown_community_type():
    town = Entity(entity_id=9, name="Nowhere", indicators={"POP_2009": 1200})
    table = build_table(region_spec(TableRegion.DEMOGRAPHIC), town, ReferenceDataStore())
    assert table.rows[0].as_tuple() == ("Population", "1,200", MISSING_VALUE, "31,807")
    assert table.rows[1].entity_value == MISSING_VALUE
