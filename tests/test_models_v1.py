import json

import pytest

from driverpricing.models_v1 import (
    BasicDriverData,
    CompleteDriver,
    DriverPrice,
    DriverStyle,
    PopularityLevel,
    SeasonPhase,
    SeasonStats,
    TeamData,
    load_drivers,
    parse_driver,
)

SAMPLE = {
    "Name": "Test Driver",
    "Team": "Alpha",
    "Age": 27,
    "ChampionshipWins": 2,
    "CareerPodiums": 40,
    "CareerStarts": 150,
    "Seasons": [
        {
            "Year": 2024,
            "Team": "Alpha",
            "Points": 210.5,
            "Wins": 3,
            "Races": 22,
            "TeamPosition": 2,
            "RecentRaces": [
                {"RaceName": "Opening", "RaceNumber": 1, "FinishPosition": 2,
                 "StartPosition": 4, "PointsScored": 18, "FastestLap": True,
                 "DNF": False, "Classified": True}
            ],
        }
    ],
    "PrimaryStyle": "Aggressive",
    "SecondaryStyle": "Quali-Ace",
    "Specialties": ["WetWeather", "Street"],
    "Weaknesses": ["FuelSaving"],
    "IsRookie": False,
    "MarketPopularity": "High",
    "TeamData": {
        "Name": "Alpha",
        "PowerUnit": "Mercedes",
        "SeasonPosition": 2,
        "SeasonPoints": 300,
        "BudgetTier": "Top",
        "SeasonHistory": [{"Year": 2023, "Points": 250, "Races": 22}],
        "RecentUpgrades": True,
        "RecentRacePositions": [3, 4.5],
        "DNFs": 1,
    },
    "PreviousTeam": "Beta",
    "RacesWithCurrentTeam": 3,
}


def test_parse_driver_reads_nested_fields():
    driver = parse_driver(SAMPLE)
    assert driver.name == "Test Driver"
    assert driver.age == 27
    assert driver.career_starts == 150
    assert driver.seasons[0].points == 210.5
    assert driver.seasons[0].recent_races[0].fastest_lap is True
    assert driver.seasons[0].recent_races[0].start_position == 4
    assert driver.team_data.power_unit == "Mercedes"
    assert driver.team_data.season_points == 300.0
    assert driver.team_data.season_history[0].races == 22
    assert driver.team_data.recent_race_positions == [3.0, 4.5]
    assert driver.team_data.dnfs == 1
    assert driver.specialties == ["WetWeather", "Street"]
    assert driver.previous_team == "Beta"


def test_parse_driver_converts_known_enums_and_keeps_unknown():
    driver = parse_driver(SAMPLE)
    assert driver.primary_style is DriverStyle.AGGRESSIVE
    assert driver.secondary_style == "Quali-Ace"
    assert driver.market_popularity is PopularityLevel.HIGH


def test_parse_driver_keys_are_case_insensitive():
    driver = parse_driver({"name": "Lower", "careerstarts": 12, "teamdata": {"budgettier": "Top"}})
    assert driver.name == "Lower"
    assert driver.career_starts == 12
    assert driver.team_data.budget_tier == "Top"


def test_parse_driver_missing_fields_take_zero_values():
    driver = parse_driver({"Name": "Empty", "Seasons": None})
    assert driver == BasicDriverData(name="Empty")
    assert driver.team_data == TeamData()


@pytest.mark.parametrize(
    "payload",
    [
        {"Age": 27.5},
        {"Age": True},
        {"Name": 3},
        {"IsRookie": "yes"},
        {"Seasons": {"Year": 2024}},
        {"Specialties": ["Wet", 1]},
        {"TeamData": {"RecentRacePositions": ["first"]}},
        {"Seasons": [{"Year": "2024"}]},
    ],
)
def test_parse_driver_rejects_wrong_types(payload):
    with pytest.raises(ValueError):
        parse_driver(payload)


def test_parse_driver_rejects_non_object():
    with pytest.raises(ValueError):
        parse_driver(["not", "an", "object"])


def test_load_drivers_round_trip(tmp_path):
    path = tmp_path / "drivers.json"
    path.write_text(json.dumps([SAMPLE, {"Name": "Second"}]), encoding="utf-8")
    drivers = load_drivers(path)
    assert [d.name for d in drivers] == ["Test Driver", "Second"]
    assert drivers[0] == parse_driver(SAMPLE)


def test_load_drivers_null_is_empty(tmp_path):
    path = tmp_path / "drivers.json"
    path.write_text("null", encoding="utf-8")
    assert load_drivers(path) == []


def test_load_drivers_rejects_object(tmp_path):
    path = tmp_path / "drivers.json"
    path.write_text(json.dumps(SAMPLE), encoding="utf-8")
    with pytest.raises(ValueError):
        load_drivers(path)


def test_load_drivers_rejects_bad_json(tmp_path):
    path = tmp_path / "drivers.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_drivers(path)


def test_load_drivers_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_drivers(tmp_path / "absent.json")


def test_seasons_by_recency_sorts_in_place_and_is_stable():
    seasons = [
        SeasonStats(year=2022, team="a"),
        SeasonStats(year=2024, team="b"),
        SeasonStats(year=2022, team="c"),
        SeasonStats(year=2023, team="d"),
    ]
    driver = CompleteDriver(BasicDriverData(seasons=seasons))
    ordered = driver.seasons_by_recency()
    assert [s.team for s in ordered] == ["b", "d", "a", "c"]
    assert driver.basic_data.seasons is ordered


def test_complete_driver_builds_tag_sets():
    basic = BasicDriverData(specialties=["Wet", "Street", "Wet"], weaknesses=["RaceStart"])
    driver = CompleteDriver(basic)
    assert driver.specialties == frozenset({"Wet", "Street"})
    assert driver.weaknesses == frozenset({"RaceStart"})
    assert driver.abilities == {}
    assert driver.team_strength == 0.0


def test_driver_price_holds_breakdown():
    driver = CompleteDriver(BasicDriverData(name="X"))
    price = DriverPrice(driver=driver, price=21.5, component_breakdown={"Raw Price": 21.7})
    assert price.driver.basic_data.name == "X"
    assert price.component_breakdown["Raw Price"] == 21.7


def test_season_phase_values():
    assert [p.value for p in SeasonPhase] == ["Early", "Mid", "Late"]
    assert DriverStyle("All-Rounder") is DriverStyle.ALL_ROUNDER