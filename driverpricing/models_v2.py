"""Input records, per-season ratios and team figures for the second-generation model."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from driverpricing.models_v1 import _as_enum, _Reader

WINDOW_SIZE = 5
EWMA_ALPHA = 0.35
DEFAULT_GRID_CEILING = 0.05

_ENGINE_TIER = {
    "mercedes": 1.00,
    "ferrari": 0.90,
    "honda": 0.85,
    "rbpt": 0.85,
    "renault": 0.80,
    "alpine": 0.80,
}
_DEFAULT_ENGINE_TIER = 0.60

_BUDGET_TIER = {
    "top": 1.00,
    "upper-mid": 0.75,
    "lower-mid": 0.50,
    "backmarker": 0.25,
}
_DEFAULT_BUDGET_TIER = 0.50

_MOMENTUM_WEIGHTS = (0.60, 0.36, 0.216)


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


def _ratio(numerator: float, denominator: float) -> float:
    """Divide, yielding infinities or NaN on a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def clamp(x: float, lo: float, hi: float) -> float:
    """Limit x to [lo, hi]; NaN passes through unchanged."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def mean_std(values: Sequence[float]) -> tuple[float, float]:
    """Mean and population standard deviation; NaN for an empty sequence."""
    if not values:
        return math.nan, math.nan
    mu = sum(values) / len(values)
    variance = sum((v - mu) ** 2 for v in values) / len(values)
    return mu, math.sqrt(variance)


def weighted_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted mean skipping NaN values and non-positive weights; NaN if nothing counts."""
    total = 0.0
    weight_sum = 0.0
    for value, weight in zip(values, weights, strict=True):
        if not math.isnan(value) and weight > 0:
            total += value * weight
            weight_sum += weight
    if weight_sum == 0:
        return math.nan
    return total / weight_sum


@dataclass
class TeamSeasonHistory:
    """A team's result in one past season."""

    year: int = 0
    position: int = 0
    points: float = 0.0
    wins: int = 0
    podiums: int = 0
    total_races: int = 0


@dataclass
class TeamData:
    """Directly observable information about a team."""

    name: str = ""
    power_unit: str = ""
    season_position: int = 0
    season_points: float = 0.0
    budget_tier: str = ""
    season_history: list[TeamSeasonHistory] = field(default_factory=list)
    wins: int = 0
    podiums: int = 0
    dnfs: int = 0
    recent_upgrades: bool = False
    recent_race_positions: list[float] = field(default_factory=list)
    recent_qualifying_positions: list[float] = field(default_factory=list)
    total_races: int = 0
    current_race: int = 0

    def _recent_history(self) -> list[TeamSeasonHistory]:
        return self.season_history[:2]

    def strength(self, total: float) -> float:
        """The team's share of all constructor points."""
        if total == 0:
            return 0.0
        return self.season_points / total

    def reliability(self) -> float:
        """One minus the team's DNF rate this season."""
        if self.current_race == 0:
            return 1.0
        return 1 - self.dnfs / self.current_race

    def momentum(self) -> float:
        """Weighted mean of projected current and the two previous seasons' points."""
        points = [project_season_points(self)]
        points.extend(season.points for season in self._recent_history())
        weights = _MOMENTUM_WEIGHTS[: len(points)]
        weight_sum = sum(weights)
        if weight_sum == 0:
            return 0.0
        return sum(p * w for p, w in zip(points, weights)) / weight_sum

    def _wins_and_races(self) -> tuple[int, int]:
        history = self._recent_history()
        wins = self.wins + sum(season.wins for season in history)
        races = self.current_race + sum(season.total_races for season in history)
        return wins, races

    def ceiling(self, grid_mean: float) -> float:
        """Win rate over this and the two previous seasons, or grid_mean without races."""
        wins, races = self._wins_and_races()
        if races == 0:
            return grid_mean
        return wins / races


def project_season_points(team: TeamData) -> float:
    """Extrapolate season points to a full season while before mid-season."""
    if team.current_race == 0:
        return 0.0
    half = int(team.total_races / 2)
    if team.current_race < half and half > 0:
        return team.season_points * team.total_races / team.current_race
    return team.season_points


def map_engine_tier(power_unit: str) -> float:
    """Latent horsepower score of an engine supplier."""
    return _ENGINE_TIER.get(power_unit.lower(), _DEFAULT_ENGINE_TIER)


def map_budget_tier(budget_tier: str) -> float:
    """Spending-power score of a publicly known budget tier."""
    return _BUDGET_TIER.get(budget_tier.lower(), _DEFAULT_BUDGET_TIER)


def grid_mean_ceiling(teams: Iterable[TeamData]) -> float:
    """Race-weighted mean of team ceilings across the grid."""
    rates: list[float] = []
    weights: list[float] = []
    for team in teams:
        wins, races = team._wins_and_races()
        if races == 0:
            continue
        rates.append(wins / races)
        weights.append(float(races))
    mean = weighted_mean(rates, weights)
    return DEFAULT_GRID_CEILING if math.isnan(mean) else mean


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

    def gain(self) -> int:
        """Positions gained from grid to finish."""
        return self.start_position - self.finish_position


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

    def _per_race(self, amount: float) -> float:
        return 0.0 if self.races == 0 else amount / self.races

    def ppr(self) -> float:
        """Points per race."""
        return self._per_race(self.points)

    def win_rate(self) -> float:
        """Wins per race."""
        return self._per_race(self.wins)

    def pod_rate(self) -> float:
        """Podiums per race."""
        return self._per_race(self.podiums)

    def ptf_rate(self) -> float:
        """Points finishes per race."""
        return self._per_race(self.point_finishes)

    def dnf_rate(self) -> float:
        """Retirements per race."""
        return self._per_race(self.dnfs)

    def team_share(self) -> float:
        """The driver's share of the team's points; an even split if none."""
        if self.team_points == 0:
            return 0.5
        return self.points / self.team_points

    def mate_delta(self) -> float:
        """Points ahead of the teammate."""
        return self.points - self.teammate_points

    def champ_pct(self, grid: int) -> float:
        """Team championship standing scaled so first place is 1 and last is 0."""
        if grid == 0:
            return 0.0
        return 1 - _ratio(float(self.team_position - 1), float(grid - 1))

    def last_classified(self, limit: int) -> list[RaceResult]:
        """Newest classified races, at most ``limit``; sorts recent races newest first."""
        if limit < 0:
            raise ValueError(f"limit must not be negative, got {limit}")
        self.recent_races.sort(key=lambda race: race.race_number, reverse=True)
        chosen: list[RaceResult] = []
        for race in self.recent_races:
            if race.classified:
                chosen.append(race)
                if len(chosen) == limit:
                    break
        return chosen

    def window(self) -> list[RaceResult]:
        """The live window: the last five classified races, newest first."""
        return self.last_classified(WINDOW_SIZE)

    def gain_raw(self) -> float:
        """Mean positions gained over the window."""
        races = self.window()
        if not races:
            return 0.0
        return sum(race.gain() for race in races) / len(races)

    def vol_raw(self) -> float:
        """Population standard deviation of positions gained over the window."""
        races = self.window()
        if len(races) < 2:
            return 0.0
        return mean_std([float(race.gain()) for race in races])[1]

    def clutch_raw(self) -> float:
        """Share of window races finished in the top five."""
        races = self.window()
        if not races:
            return 0.0
        return sum(1 for race in races if race.finish_position <= 5) / len(races)

    def fast_raw(self) -> float:
        """Share of window races with the fastest lap."""
        races = self.window()
        if not races:
            return 0.0
        return sum(1 for race in races if race.fastest_lap) / len(races)

    def rec_raw(self) -> float:
        """Exponentially weighted points of the window, newest weighted most."""
        races = self.last_classified(WINDOW_SIZE)
        total = 0.0
        weight = EWMA_ALPHA
        for race in races:
            total += weight * race.points_scored
            weight *= 1 - EWMA_ALPHA
        return total

    def rows(self) -> int:
        """Number of races in the window."""
        return len(self.window())

    def cons_raw(self) -> float:
        """Finishing rate over the season."""
        if self.races == 0:
            return 1.0
        return 1 - self.dnfs / self.races


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


def _parse_team_history(data: Any, where: str) -> TeamSeasonHistory:
    r = _Reader(data, where)
    return TeamSeasonHistory(
        year=r.integer("Year"),
        position=r.integer("Position"),
        points=r.number("Points"),
        wins=r.integer("Wins"),
        podiums=r.integer("Podiums"),
        total_races=r.integer("TotalRaces"),
    )


def _parse_team(data: Any, where: str) -> TeamData:
    r = _Reader(data, where)
    return TeamData(
        name=r.text("Name"),
        power_unit=r.text("PowerUnit"),
        season_position=r.integer("SeasonPosition"),
        season_points=r.number("SeasonPoints"),
        budget_tier=r.text("BudgetTier"),
        season_history=r.records("SeasonHistory", _parse_team_history),
        wins=r.integer("Wins"),
        podiums=r.integer("Podiums"),
        dnfs=r.integer("DNFs"),
        recent_upgrades=r.flag("RecentUpgrades"),
        recent_race_positions=r.numbers("RecentRacePositions"),
        recent_qualifying_positions=r.numbers("RecentQualifyingPositions"),
        total_races=r.integer("TotalRaces"),
        current_race=r.integer("CurrentRace"),
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