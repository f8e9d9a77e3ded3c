"""Derived driver metrics used by the first-generation pricing model."""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence

from driverpricing.models_v1 import (
    CompleteDriver,
    PopularityLevel,
    SeasonPhase,
)

_NUMBER_OF_TEAMS = 10
_POPULARITY_CAP = 0.95

_BUDGET_FACTOR = {
    "Top": 1.0,
    "Upper-Mid": 0.25,
    "Lower-Mid": -0.25,
    "Backmarker": -0.5,
}

_MARKET_SIZE = {
    PopularityLevel.HIGH: 0.85,
    PopularityLevel.MEDIUM: 0.65,
    PopularityLevel.LOW: 0.45,
}

_USER_POPULARITY = {
    PopularityLevel.HIGH: 0.9,
    PopularityLevel.MEDIUM: 0.6,
    PopularityLevel.LOW: 0.3,
}


def _div(numerator: float, denominator: float) -> float:
    """Divide, yielding infinities or NaN on a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _pow(base: float, exponent: float) -> float:
    """Raise to a power, yielding NaN where the real result is undefined."""
    try:
        return math.pow(base, exponent)
    except ValueError:
        return math.nan


def _max(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return max(a, b)


def _min(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return min(a, b)


def _clamp(value: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return _max(lo, _min(hi, value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _slope(ys: Sequence[float], first_x: int) -> float:
    """Least-squares slope of ys against consecutive x values."""
    n = float(len(ys))
    xs = [float(first_x + offset) for offset in range(len(ys))]
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)
    return _div(n * sum_xy - sum_x * sum_y, n * sum_x2 - sum_x * sum_x)


def _spread_score(positions: Sequence[float]) -> float:
    """Score how tightly positions cluster: 1 for identical, lower when spread."""
    if len(positions) <= 1:
        return 0.0
    spread = max(positions) - min(positions)
    if spread <= 0:
        return 1.0
    return _clamp(1.0 - 2.0 * statistics.stdev(positions) / spread)


def career_team_changes(driver: CompleteDriver) -> int:
    """Number of team changes: distinct named teams raced for, minus one."""
    seasons = driver.basic_data.seasons
    if not seasons:
        return 0
    return len({season.team for season in seasons if season.team}) - 1


def points_vs_teammate(driver: CompleteDriver) -> float:
    """Share of the team's points the driver scored in the latest season."""
    basic = driver.basic_data
    if not basic.seasons:
        return 0.5
    latest = driver.seasons_by_recency()[0]
    if latest.team_points == 0:
        if basic.career_podiums > 0 and basic.career_starts > 50:
            return 0.75
        if basic.is_rookie:
            return 0.32
        return 0.5
    return latest.points / latest.team_points


def apply_popularity_metrics(driver: CompleteDriver) -> None:
    """Estimate social media, media, merchandise and market figures in place."""
    basic = driver.basic_data
    champion_bonus = min(basic.championship_wins * 0.07, 0.30)
    podium_bonus = min(basic.career_podiums * 0.002, 0.20)
    experience_bonus = min(basic.career_starts / 200.0 * 0.15, 0.15)
    combined = 0.50 + champion_bonus + podium_bonus + experience_bonus

    first = basic.seasons[0] if basic.seasons else None

    recent_success = 0.0
    if first is not None and first.wins > 0:
        recent_success = min(first.wins * 0.02, 0.2)

    if basic.age < 25:
        age_bonus = 0.15
    elif basic.age < 30:
        age_bonus = 0.10
    elif basic.age < 35:
        age_bonus = 0.05
    else:
        age_bonus = 0.0

    driver.social_media_followers = min(combined + age_bonus + recent_success, _POPULARITY_CAP)
    driver.media_mentions = min(combined + recent_success * 1.5, _POPULARITY_CAP)

    merchandise_bonus = 0.0
    if first is not None:
        if first.team_position == 1:
            merchandise_bonus = 0.15
        elif first.team_position <= 3:
            merchandise_bonus = 0.10
    driver.merchandise_sales = min(combined + merchandise_bonus, _POPULARITY_CAP)

    size = _MARKET_SIZE.get(_popularity(basic.market_popularity), _MARKET_SIZE[PopularityLevel.MEDIUM])
    driver.home_market_size = size
    driver.fanbase_size = size


def _popularity(level: PopularityLevel | str) -> PopularityLevel | None:
    try:
        return PopularityLevel(level)
    except ValueError:
        return None


def _points_trend(team) -> float:
    """Weighted, normalised trend of the team's points per race over seasons."""
    if not team.season_history:
        return 0.0
    team.season_history.sort(key=lambda season: season.year)
    per_race = [_div(season.points, season.races) for season in team.season_history]
    per_race.append(_div(team.season_points, team.current_race))

    changes = [later - earlier for earlier, later in zip(per_race, per_race[1:])]
    weights = [float(i) for i in range(1, len(per_race))]
    avg_change = sum(c * w for c, w in zip(changes, weights)) / sum(weights)

    change_mean = sum(changes) / len(changes)
    variance = sum(c * c for c in changes) / len(changes) - change_mean * change_mean
    std_dev = math.sqrt(_max(variance, 0.1)) if not math.isnan(variance) else math.nan
    if std_dev > 0:
        return math.tanh(avg_change / (2.0 * std_dev))
    return 0.0


def team_strength(driver: CompleteDriver, current_race: int, total_points_in_season: int) -> float:
    """Score the strength of the driver's current team.

    ``total_points_in_season`` belongs to the model's configuration; the points
    share it would give does not enter the score.
    """
    team = driver.basic_data.team_data

    qualifying_score = 0.0
    if team.recent_qualifying_positions:
        avg_grid = _mean(team.recent_qualifying_positions)
        if avg_grid > 0:
            qualifying_score = (10 - avg_grid) / 10

    budget_factor = _BUDGET_FACTOR.get(team.budget_tier, 0.0)

    position_score = (_NUMBER_OF_TEAMS - team.season_position + 1) / _NUMBER_OF_TEAMS
    position_score = (_pow(position_score, 0.7) - 0.5) / 0.5

    recent_form = 0.0
    if team.recent_race_positions:
        recent_form = (10 - _mean(team.recent_race_positions)) / 10.0

    upgrade_bonus = 0.05 if team.recent_upgrades else 0.0
    trend = _points_trend(team)

    race_success = 0.0
    if current_race != 0:
        race_success = (team.wins / current_race) * 0.65 + (team.podiums / current_race) * 0.35

    return (
        position_score * 0.20
        + race_success * 0.10
        + recent_form * 0.35
        + qualifying_score * 0.10
        + budget_factor * 0.15
        + upgrade_bonus
        + trend * 0.1
    )


def season_phase(driver: CompleteDriver) -> SeasonPhase:
    """Where in the season the driver's current race falls."""
    basic = driver.basic_data
    if basic.current_race_number <= 0 or basic.total_races_in_season <= 0:
        return SeasonPhase.MID
    progress = basic.current_race_number / basic.total_races_in_season
    if progress < 0.25:
        return SeasonPhase.EARLY
    if progress > 0.75:
        return SeasonPhase.LATE
    return SeasonPhase.MID


def three_year_trend(driver: CompleteDriver) -> float:
    """Slope of points per race across the driver's seasons, in [-1, 1]."""
    basic = driver.basic_data
    if basic.is_rookie:
        return 0.0
    seasons = basic.seasons
    if len(seasons) < 2:
        return 0.0
    has_hiatus = seasons[0].year - seasons[1].year > 1

    slope = _slope([_div(season.points, season.races) for season in seasons], 0)

    if not has_hiatus or slope > 0:
        return _clamp(slope)
    if slope < -1:
        return -0.4
    return _clamp(slope + 0.2)


def overperformance_factor(driver: CompleteDriver) -> float:
    """How much the driver exceeds what the car alone would suggest."""
    basic = driver.basic_data
    team = basic.team_data
    base_value = (driver.points_vs_teammate - 0.5) / 0.5

    season = next((s for s in basic.seasons if s.year == team.year), None)

    win_rate = 0.0
    if team.wins != 0:
        season_wins = season.wins if season is not None else 0
        win_rate = (season_wins / team.wins - 0.5) / 0.5

    podium_rate = 0.0
    if team.podiums != 0:
        season_podiums = season.podiums if season is not None else 0
        podium_rate = (season_podiums / team.podiums - 0.5) / 0.5

    qualifying = 0.0
    if team.recent_qualifying_positions:
        team_avg = _mean(team.recent_qualifying_positions)
        if basic.seasons:
            latest = driver.seasons_by_recency()[0]
            starts = [race.start_position for race in latest.recent_races if race.start_position > 0]
            if starts:
                difference = team_avg - _mean(starts)
                qualifying = _clamp(0.5 + difference / 10.0)

    return base_value * 0.35 + win_rate * 0.3 + podium_rate * 0.2 + qualifying * 0.15


def performance_ratio(driver: CompleteDriver) -> float:
    """Race-craft score from the latest season's recent races."""
    if not driver.basic_data.seasons:
        return 0.0
    races = driver.seasons_by_recency()[0].recent_races

    gains = [
        race.start_position - race.finish_position
        for race in races
        if race.start_position > 0 and 0 < race.finish_position <= 20
    ]
    gain_score = _clamp(_mean(gains) / 4.0) if gains else 0.0

    finishes = [float(race.finish_position) for race in races if 0 < race.finish_position <= 20]
    trend_score = _clamp(-_slope(finishes, 1)) if len(finishes) >= 3 else 0.0

    fastest_score = 0.0
    dnf_score = 0.0
    if races:
        fastest_rate = sum(1 for race in races if race.fastest_lap) / len(races)
        fastest_score = _clamp((fastest_rate - 0.075) / 0.075)
        dnf_rate = sum(1 for race in races if race.dnf) / len(races)
        dnf_score = _clamp((0.15 - dnf_rate) / 0.15)

    return gain_score * 0.5 + dnf_score * 0.1 + fastest_score * 0.1 + trend_score * 0.3


def consistency(driver: CompleteDriver) -> float:
    """Reliability of qualifying and finishing positions, less a DNF penalty."""
    seasons = driver.seasons_by_recency()
    if not seasons:
        return 0.80
    races = seasons[0].recent_races

    qualifying = _spread_score(
        [float(race.start_position) for race in races if race.start_position > 0]
    )
    finishing = _spread_score(
        [float(race.finish_position) for race in races if 0 < race.finish_position <= 20]
    )
    dnfs = sum(1 for race in races if race.dnf)
    dnf_score = -0.2 * dnfs if dnfs else 0.0

    return qualifying * 0.3 + finishing * 0.5 + dnf_score * 0.2


def market_popularity(driver: CompleteDriver) -> float:
    """Fan popularity from career length and the user-given popularity level."""
    basic = driver.basic_data
    longevity = min(basic.career_starts / 150.0, 1.0)
    user_level = _USER_POPULARITY.get(_popularity(basic.market_popularity), 0.5)
    return longevity * 0.25 + user_level * 0.75