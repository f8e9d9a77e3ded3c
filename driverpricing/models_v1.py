"""Input and result records for the first-generation pricing model."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

_T = TypeVar("_T")


class DriverStyle(str, Enum):
    """A driver's racing style classification."""

    AGGRESSIVE = "Aggressive"
    SMOOTH = "Smooth"
    DEFENSIVE = "Defensive"
    OVERTAKER = "Overtaker"
    ALL_ROUNDER = "All-Rounder"
    ROOKIE = "Rookie"


class PopularityLevel(str, Enum):
    """User-specified market popularity of a driver."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SeasonPhase(str, Enum):
    """Which part of the season a race falls in."""

    EARLY = "Early"
    MID = "Mid"
    LATE = "Late"


@dataclass
class TeamSeasonHistory:
    """A team's result in one past season."""

    year: int = 0
    position: int = 0
    points: float = 0.0
    wins: int = 0
    podiums: int = 0
    races: int = 0


@dataclass
class TeamData:
    """Directly observable information about a team."""

    name: str = ""
    power_unit: str = ""
    season_position: int = 0
    current_race: int = 0
    season_points: float = 0.0
    budget_tier: str = ""
    season_history: list[TeamSeasonHistory] = field(default_factory=list)
    wins: int = 0
    year: int = 0
    podiums: int = 0
    dnfs: int = 0
    recent_upgrades: bool = False
    recent_race_positions: list[float] = field(default_factory=list)
    recent_qualifying_positions: list[float] = field(default_factory=list)


@dataclass
class RaceResult:
    """One race result of a driver."""

    race_name: str = ""
    race_number: int = 0
    finish_position: int = 0
    start_position: int = 0
    points_scored: float = 0.0
    fastest_lap: bool = False
    dnf: bool = False
    classified: bool = False


@dataclass
class SeasonStats:
    """Publicly available statistics of a driver's season."""

    year: int = 0
    team: str = ""
    points: float = 0.0
    wins: int = 0
    podiums: int = 0
    races: int = 0
    point_finishes: int = 0
    dnfs: int = 0
    team_points: float = 0.0
    team_position: int = 0
    teammate_points: float = 0.0
    recent_races: list[RaceResult] = field(default_factory=list)


@dataclass
class BasicDriverData:
    """The data a user supplies about a driver."""

    name: str = ""
    team: str = ""
    age: int = 0
    championship_wins: int = 0
    career_podiums: int = 0
    career_starts: int = 0
    seasons: list[SeasonStats] = field(default_factory=list)
    primary_style: DriverStyle | str = ""
    secondary_style: DriverStyle | str = ""
    specialties: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    is_rookie: bool = False
    market_popularity: PopularityLevel | str = ""
    team_data: TeamData = field(default_factory=TeamData)
    is_team_leader: bool = False
    current_race_number: int = 0
    total_races_in_season: int = 0
    previous_team: str = ""
    races_with_current_team: int = 0


@dataclass
class CompleteDriver:
    """A driver's input data together with every derived attribute."""

    basic_data: BasicDriverData
    specialties: frozenset[str] = field(init=False)
    weaknesses: frozenset[str] = field(init=False)

    points_vs_teammate: float = 0.0
    overperformance_factor: float = 0.0
    career_team_changes: int = 0
    social_media_followers: float = 0.0
    media_mentions: float = 0.0
    merchandise_sales: float = 0.0
    home_market_size: float = 0.0
    fanbase_size: float = 0.0
    three_year_trend: float = 0.0
    team_strength: float = 0.0
    normalized_team_strength: float = 0.0

    abilities: dict[str, float] = field(default_factory=dict)

    performance_ratio: float = 0.0
    consistency: float = 0.0
    market_popularity: float = 0.0

    def __post_init__(self) -> None:
        self.specialties = frozenset(self.basic_data.specialties)
        self.weaknesses = frozenset(self.basic_data.weaknesses)

    def seasons_by_recency(self) -> list[SeasonStats]:
        """Sort the driver's seasons newest first, in place, and return them."""
        self.basic_data.seasons.sort(key=lambda season: season.year, reverse=True)
        return self.basic_data.seasons


@dataclass
class DriverPrice:
    """A driver with the computed price and its components."""

    driver: CompleteDriver
    price: float
    component_breakdown: dict[str, float] = field(default_factory=dict)


class _Reader:
    """Typed, case-insensitive access to the fields of a JSON object."""

    def __init__(self, data: Any, where: str) -> None:
        if not isinstance(data, Mapping):
            raise ValueError(f"{where}: expected a JSON object, got {type(data).__name__}")
        self._data = data
        self._where = where
        self._folded: dict[str, str] = {}
        for key in data:
            self._folded.setdefault(str(key).lower(), key)

    def _get(self, name: str) -> Any:
        if name in self._data:
            return self._data[name]
        key = self._folded.get(name.lower())
        return None if key is None else self._data[key]

    def _fail(self, name: str, expected: str) -> ValueError:
        return ValueError(f"{self._where}.{name}: expected {expected}")

    def integer(self, name: str) -> int:
        value = self._get(name)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._fail(name, "an integer")
        return value

    def number(self, name: str) -> float:
        value = self._get(name)
        if value is None:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._fail(name, "a number")
        return float(value)

    def text(self, name: str) -> str:
        value = self._get(name)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise self._fail(name, "a string")
        return value

    def flag(self, name: str) -> bool:
        value = self._get(name)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise self._fail(name, "a boolean")
        return value

    def _array(self, name: str) -> list[Any]:
        value = self._get(name)
        if value is None:
            return []
        if not isinstance(value, list):
            raise self._fail(name, "an array")
        return value

    def numbers(self, name: str) -> list[float]:
        items = self._array(name)
        if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in items):
            raise self._fail(name, "an array of numbers")
        return [float(v) for v in items]

    def texts(self, name: str) -> list[str]:
        items = self._array(name)
        if not all(isinstance(v, str) for v in items):
            raise self._fail(name, "an array of strings")
        return list(items)

    def records(self, name: str, parse: Callable[[Any, str], _T]) -> list[_T]:
        return [
            parse(item, f"{self._where}.{name}[{position}]")
            for position, item in enumerate(self._array(name))
        ]

    def record(self, name: str, parse: Callable[[Any, str], _T]) -> _T:
        value = self._get(name)
        return parse({} if value is None else value, f"{self._where}.{name}")


def _as_enum(enum_cls: type[Enum], value: str) -> Enum | str:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _parse_team_history(data: Any, where: str) -> TeamSeasonHistory:
    r = _Reader(data, where)
    return TeamSeasonHistory(
        year=r.integer("Year"),
        position=r.integer("Position"),
        points=r.number("Points"),
        wins=r.integer("Wins"),
        podiums=r.integer("Podiums"),
        races=r.integer("Races"),
    )


def _parse_team(data: Any, where: str) -> TeamData:
    r = _Reader(data, where)
    return TeamData(
        name=r.text("Name"),
        power_unit=r.text("PowerUnit"),
        season_position=r.integer("SeasonPosition"),
        current_race=r.integer("CurrentRace"),
        season_points=r.number("SeasonPoints"),
        budget_tier=r.text("BudgetTier"),
        season_history=r.records("SeasonHistory", _parse_team_history),
        wins=r.integer("Wins"),
        year=r.integer("Year"),
        podiums=r.integer("Podiums"),
        dnfs=r.integer("DNFs"),
        recent_upgrades=r.flag("RecentUpgrades"),
        recent_race_positions=r.numbers("RecentRacePositions"),
        recent_qualifying_positions=r.numbers("RecentQualifyingPositions"),
    )


def _parse_race(data: Any, where: str) -> RaceResult:
    r = _Reader(data, where)
    return RaceResult(
        race_name=r.text("RaceName"),
        race_number=r.integer("RaceNumber"),
        finish_position=r.integer("FinishPosition"),
        start_position=r.integer("StartPosition"),
        points_scored=r.number("PointsScored"),
        fastest_lap=r.flag("FastestLap"),
        dnf=r.flag("DNF"),
        classified=r.flag("Classified"),
    )


def _parse_season(data: Any, where: str) -> SeasonStats:
    r = _Reader(data, where)
    return SeasonStats(
        year=r.integer("Year"),
        team=r.text("Team"),
        points=r.number("Points"),
        wins=r.integer("Wins"),
        podiums=r.integer("Podiums"),
        races=r.integer("Races"),
        point_finishes=r.integer("PointFinishes"),
        dnfs=r.integer("DNFs"),
        team_points=r.number("TeamPoints"),
        team_position=r.integer("TeamPosition"),
        teammate_points=r.number("TeammatePoints"),
        recent_races=r.records("RecentRaces", _parse_race),
    )


def _parse_driver(data: Any, where: str) -> BasicDriverData:
    r = _Reader(data, where)
    return BasicDriverData(
        name=r.text("Name"),
        team=r.text("Team"),
        age=r.integer("Age"),
        championship_wins=r.integer("ChampionshipWins"),
        career_podiums=r.integer("CareerPodiums"),
        career_starts=r.integer("CareerStarts"),
        seasons=r.records("Seasons", _parse_season),
        primary_style=_as_enum(DriverStyle, r.text("PrimaryStyle")),
        secondary_style=_as_enum(DriverStyle, r.text("SecondaryStyle")),
        specialties=r.texts("Specialties"),
        weaknesses=r.texts("Weaknesses"),
        is_rookie=r.flag("IsRookie"),
        market_popularity=_as_enum(PopularityLevel, r.text("MarketPopularity")),
        team_data=r.record("TeamData", _parse_team),
        is_team_leader=r.flag("IsTeamLeader"),
        current_race_number=r.integer("CurrentRaceNumber"),
        total_races_in_season=r.integer("TotalRacesInSeason"),
        previous_team=r.text("PreviousTeam"),
        races_with_current_team=r.integer("RacesWithCurrentTeam"),
    )


def parse_driver(data: Any) -> BasicDriverData:
    """Build driver data from a decoded JSON object.

    Keys match field names case-insensitively; missing or null fields take
    their zero value. A value of the wrong type raises ValueError.
    """
    return _parse_driver(data, "driver")


def load_drivers(path: str | Path) -> list[BasicDriverData]:
    """Read a JSON array of drivers from a file."""
    with open(path, encoding="utf-8") as handle:
        payload = json.load(handle)
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array of drivers, got {type(payload).__name__}")
    return [_parse_driver(item, f"drivers[{position}]") for position, item in enumerate(payload)]