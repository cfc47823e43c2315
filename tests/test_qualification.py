from football_sim.config import CompetitionSpec
from football_sim.qualification import allocate_competitions, select_with_allocation, zone_for_position, zone_label


def _strength(ratings):
    return lambda cid: ratings.get(cid, 0.0)


def test_guaranteed_slots_then_strongest_leftovers() -> None:
    ratings = {"e1": 90, "e2": 89, "e3": 88, "s1": 70, "s2": 60, "x1": 80}
    country = {"e1": "ENG", "e2": "ENG", "e3": "ENG", "s1": "ESP", "s2": "ESP", "x1": "ITA"}
    result = select_with_allocation(
        ["e1", "e2", "e3", "s1", "s2", "x1"],
        {"ENG": 1, "ESP": 1},
        4,
        country.__getitem__,
        _strength(ratings),
    )
    assert result.selected[:2] == ["e1", "s1"]
    assert sorted(result.selected[2:]) == ["e2", "e3"]
    assert result.overflow == ["x1", "s2"]


def test_selection_never_exceeds_size_or_repeats() -> None:
    ratings = {f"c{i}": float(i) for i in range(10)}
    result = select_with_allocation(
        [f"c{i}" for i in range(10)] + ["c3"], {}, 4, lambda cid: "AAA", _strength(ratings)
    )
    assert result.selected == ["c9", "c8", "c7", "c6"]
    assert len(set(result.selected + result.overflow)) == 10


def test_zone_priority_prefers_continental() -> None:
    zones = {"sudamericana": (4, 5), "relegation": (5, 8)}
    assert zone_for_position(zones, 5) == "sudamericana"
    assert zone_for_position(zones, 6) == "relegation"
    assert zone_for_position(zones, 9) is None


def test_zone_label(small_reference) -> None:
    assert zone_label(small_reference, "BRA_SERIE_A", 1) == "LIB"
    assert zone_label(small_reference, "BRA_SERIE_B", 2) == "UP"
    assert zone_label(small_reference, "BRA_SERIE_A", 8) == "Z4"


def test_allocation_from_previous_tables_and_overflow(small_reference) -> None:
    previous = {
        "BRA_SERIE_A": [{"club_id": f"BRA_SERIE_A_{i:02d}"} for i in range(8, 0, -1)],
    }
    strength = lambda cid: small_reference.clubs[cid].overall  # noqa: E731
    specs = (
        CompetitionSpec("LIB", "Lib", "conmebol", "libertadores", "KO", size=4, overflow_into="SUD"),
        CompetitionSpec("SUD", "Sud", "conmebol", "sudamericana", "KO", size=16),
    )
    allocated = allocate_competitions(small_reference, previous, strength, specs)

    # Last season's table was inverted, so the weakest clubs took the top zone.
    lib_pool = {"BRA_SERIE_A_08", "BRA_SERIE_A_07", "BRA_SERIE_A_06", "ARG_PRIMERA_01", "ARG_PRIMERA_02", "ARG_PRIMERA_03"}
    assert len(allocated["LIB"]) == 4
    assert set(allocated["LIB"]) <= lib_pool
    assert not set(allocated["LIB"]) & set(allocated["SUD"])
    assert set(lib_pool) - set(allocated["LIB"]) <= set(allocated["SUD"])
    assert "BRA_SERIE_B_01" not in allocated["SUD"]


def test_empty_zones_fall_back_to_strength(small_reference) -> None:
    small_reference.zones = {}
    spec = CompetitionSpec("LIB", "Lib", "conmebol", "libertadores", "KO", size=4)
    strength = lambda cid: small_reference.clubs[cid].overall  # noqa: E731
    allocated = allocate_competitions(small_reference, {}, strength, (spec,))
    assert sorted(allocated["LIB"]) == ["ARG_PRIMERA_01", "ARG_PRIMERA_02", "BRA_SERIE_A_01", "BRA_SERIE_A_02"]
