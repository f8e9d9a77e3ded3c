import math

import pytest

from driverpricing.metrics_v1 import (
    apply_popularity_metrics,
    career_team_changes,
    consistency,
    market_popularity,
    overperformance_factor,
    performance_ratio,
    points_vs_teammate,
    season_phase,
    team_strength,
    three_year_trend,
)
from driverpricing.models_v1 import (
    BasicDriverData,
    CompleteDriver,
    RaceResult,
    SeasonPhase,
    SeasonStats,
    TeamData,
    TeamSeasonHistory,
)


def make_driver(**kwargs) -> CompleteDriver:
    return CompleteDriver(basic_data=BasicDriverData(**kwargs))


def race(start=5, finish=5, dnf=False, fastest=False):
    return RaceResult(start_position=start, finish_position=finish, dnf=dnf, fastest_lap=fastest)


def test_career_team_changes_empty_is_zero():
    assert career_team_changes(make_driver()) == 0


def test_career_team_changes_counts_distinct_teams():
    one_team = make_driver(seasons=[SeasonStats(team="A"), SeasonStats(team="A")])
    two_teams = make_driver(seasons=[SeasonStats(team="A"), SeasonStats(team="B"), SeasonStats(team="")])
    assert career_team_changes(one_team) == 0
    assert career_team_changes(two_teams) == career_team_changes(one_team) + 1


def test_points_vs_teammate_uses_latest_season():
    driver = make_driver(
        seasons=[
            SeasonStats(year=2022, points=10, team_points=20),
            SeasonStats(year=2024, points=100, team_points=400),
        ]
    )
    assert points_vs_teammate(driver) == pytest.approx(100 / 400)
    assert driver.basic_data.seasons[0].year == 2024


def test_points_vs_teammate_defaults():
    assert points_vs_teammate(make_driver()) == 0.5
    veteran = make_driver(career_podiums=3, career_starts=60, seasons=[SeasonStats(year=2024)])
    rookie = make_driver(is_rookie=True, seasons=[SeasonStats(year=2024)])
    plain = make_driver(seasons=[SeasonStats(year=2024)])
    assert points_vs_teammate(veteran) == 0.75
    assert points_vs_teammate(rookie) == 0.32
    assert points_vs_teammate(plain) == 0.5


def test_popularity_metrics_market_levels():
    high = make_driver(market_popularity="High")
    low = make_driver(market_popularity="Low")
    medium = make_driver(market_popularity="Medium")
    unknown = make_driver(market_popularity="Cult")
    for driver in (high, low, medium, unknown):
        apply_popularity_metrics(driver)
    assert high.home_market_size == 0.85
    assert high.fanbase_size == high.home_market_size
    assert low.home_market_size < medium.home_market_size < high.home_market_size
    assert unknown.home_market_size == medium.home_market_size


def test_popularity_metrics_are_capped():
    star = make_driver(
        age=20,
        championship_wins=10,
        career_podiums=500,
        career_starts=400,
        seasons=[SeasonStats(year=2024, wins=20, team_position=1)],
    )
    apply_popularity_metrics(star)
    assert star.social_media_followers == 0.95
    assert star.media_mentions == 0.95
    assert star.merchandise_sales == 0.95


def test_popularity_younger_driver_more_followers():
    young = make_driver(age=22)
    old = make_driver(age=40)
    apply_popularity_metrics(young)
    apply_popularity_metrics(old)
    assert young.social_media_followers > old.social_media_followers
    assert young.media_mentions == old.media_mentions


def _team_driver(**team_kwargs) -> CompleteDriver:
    team_kwargs.setdefault("season_position", 3)
    return make_driver(team_data=TeamData(**team_kwargs))


def test_team_strength_upgrade_bonus():
    base = team_strength(_team_driver(), 10, 1000)
    upgraded = team_strength(_team_driver(recent_upgrades=True), 10, 1000)
    assert upgraded - base == pytest.approx(0.05)


def test_team_strength_budget_ordering():
    scores = [
        team_strength(_team_driver(budget_tier=tier), 10, 1000)
        for tier in ("Top", "Upper-Mid", "", "Lower-Mid", "Backmarker")
    ]
    assert scores == sorted(scores, reverse=True)


def test_team_strength_better_position_is_stronger():
    first = team_strength(_team_driver(season_position=1), 10, 1000)
    tenth = team_strength(_team_driver(season_position=10), 10, 1000)
    assert first > tenth


def test_team_strength_sorts_history_and_tolerates_zero_races():
    driver = _team_driver(
        season_history=[
            TeamSeasonHistory(year=2023, points=100, races=22),
            TeamSeasonHistory(year=2021, points=50, races=0),
        ],
        season_points=80,
        current_race=8,
    )
    score = team_strength(driver, 8, 1000)
    assert [h.year for h in driver.basic_data.team_data.season_history] == [2021, 2023]
    assert not math.isnan(score)


def test_team_strength_rising_points_beats_falling():
    rising = _team_driver(
        season_history=[TeamSeasonHistory(year=2023, points=44, races=22)],
        season_points=100,
        current_race=10,
    )
    falling = _team_driver(
        season_history=[TeamSeasonHistory(year=2023, points=440, races=22)],
        season_points=10,
        current_race=10,
    )
    assert team_strength(rising, 10, 1000) > team_strength(falling, 10, 1000)


@pytest.mark.parametrize(
    ("current", "total", "phase"),
    [
        (0, 20, SeasonPhase.MID),
        (5, 0, SeasonPhase.MID),
        (1, 20, SeasonPhase.EARLY),
        (10, 20, SeasonPhase.MID),
        (19, 20, SeasonPhase.LATE),
    ],
)
def test_season_phase(current, total, phase):
    driver = make_driver(current_race_number=current, total_races_in_season=total)
    assert season_phase(driver) is phase


def test_three_year_trend_neutral_cases():
    assert three_year_trend(make_driver(is_rookie=True)) == 0
    assert three_year_trend(make_driver(seasons=[SeasonStats(year=2024, points=10, races=10)])) == 0.0


def test_three_year_trend_clamped():
    driver = make_driver(
        seasons=[
            SeasonStats(year=2024, points=10, races=10),
            SeasonStats(year=2023, points=200, races=10),
        ]
    )
    assert three_year_trend(driver) == 1.0


def test_three_year_trend_hiatus_adjustments():
    def trend(second_year, second_points):
        return three_year_trend(
            make_driver(
                seasons=[
                    SeasonStats(year=2024, points=20, races=10),
                    SeasonStats(year=second_year, points=second_points, races=10),
                ]
            )
        )

    assert trend(2020, 0) == -0.4
    assert trend(2020, 15) == pytest.approx(trend(2023, 15) + 0.2)


def test_overperformance_neutral_driver_is_zero():
    driver = make_driver()
    driver.points_vs_teammate = 0.5
    assert overperformance_factor(driver) == 0.0


def test_overperformance_rewards_team_wins():
    team = TeamData(year=2024, wins=4, podiums=8)
    dominant = make_driver(team_data=team, seasons=[SeasonStats(year=2024, wins=4, podiums=8)])
    support = make_driver(team_data=team, seasons=[SeasonStats(year=2024, wins=0, podiums=0)])
    for driver in (dominant, support):
        driver.points_vs_teammate = 0.5
    assert overperformance_factor(dominant) > 0 > overperformance_factor(support)
    assert overperformance_factor(dominant) == pytest.approx(-overperformance_factor(support))


def test_overperformance_qualifying_better_than_team():
    team = TeamData(recent_qualifying_positions=[10.0, 10.0])
    quick = make_driver(team_data=team, seasons=[SeasonStats(year=2024, recent_races=[race(start=2)])])
    slow = make_driver(team_data=team, seasons=[SeasonStats(year=2024, recent_races=[race(start=18)])])
    for driver in (quick, slow):
        driver.points_vs_teammate = 0.5
    assert overperformance_factor(quick) > overperformance_factor(slow)


def test_performance_ratio_without_seasons():
    assert performance_ratio(make_driver()) == 0


def test_performance_ratio_bounds_and_ordering():
    gainer = make_driver(
        seasons=[SeasonStats(year=2024, recent_races=[race(15, 3), race(14, 2), race(16, 1)])]
    )
    loser = make_driver(
        seasons=[SeasonStats(year=2024, recent_races=[race(1, 10), race(2, 15), race(3, 20, dnf=True)])]
    )
    good, bad = performance_ratio(gainer), performance_ratio(loser)
    assert -1.0 <= bad < good <= 1.0


def test_consistency_without_seasons():
    assert consistency(make_driver()) == 0.80


def test_consistency_steady_beats_erratic():
    steady = make_driver(seasons=[SeasonStats(year=2024, recent_races=[race(4, 4)] * 4)])
    erratic = make_driver(
        seasons=[SeasonStats(year=2024, recent_races=[race(1, 1), race(20, 20), race(2, 19), race(10, 3)])]
    )
    assert consistency(steady) > consistency(erratic)


def test_consistency_dnf_penalty_is_linear():
    def score(dnfs):
        races = [race(4, 4, dnf=i < dnfs) for i in range(4)]
        return consistency(make_driver(seasons=[SeasonStats(year=2024, recent_races=races)]))

    c0, c1, c2 = score(0), score(1), score(2)
    assert c0 > c1 > c2
    assert c0 - c1 == pytest.approx(c1 - c2)


def test_market_popularity_levels_ordered():
    values = {
        level: market_popularity(make_driver(market_popularity=level, career_starts=100))
        for level in ("High", "Medium", "", "Low")
    }
    assert values["High"] > values["Medium"] > values[""] > values["Low"]


def test_market_popularity_longevity_capped():
    capped = market_popularity(make_driver(market_popularity="High", career_starts=150))
    beyond = market_popularity(make_driver(market_popularity="High", career_starts=300))
    rookie = market_popularity(make_driver(market_popularity="High", career_starts=0))
    assert capped == beyond
    assert capped > rookie