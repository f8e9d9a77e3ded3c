"""Fantasy price calculation and reporting for the first-generation model."""

from __future__ import annotations

import math
import statistics
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TextIO

from driverpricing import metrics_v1
from driverpricing.abilities_v1 import derive_abilities
from driverpricing.models_v1 import (
    BasicDriverData,
    CompleteDriver,
    DriverPrice,
    SeasonPhase,
)

BREAKDOWN_ORDER = (
    "Base (Team Strength)",
    "Team Tier Premium",
    "Performance Premium",
    "Championship Premium",
    "Rookie Premium",
    "Trend Adjustment",
    "Popularity Premium",
    "Consistency Value",
    "Ability Premium",
    "Backmarker Discount",
    "Pay Driver Adjustment",
    "Skill Premium",
    "Recent Form Premium",
    "Upgrade Adjustment",
    "Team Leader Premium",
    "Team Change Adjustment",
    "Season Phase Adjustment",
    "Raw Price",
    "Final Price",
)

_ALWAYS_SHOWN = frozenset({"Raw Price", "Final Price"})


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _round_half_away(value: float) -> float:
    if not math.isfinite(value):
        return value
    return math.copysign(float(math.floor(abs(value) + 0.5)), value)


def _floor(value: float) -> float:
    if not math.isfinite(value):
        return value
    return float(math.floor(value))


def _special(value: float) -> str | None:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return None


def _fixed(value: float, precision: int) -> str:
    special = _special(value)
    return special if special is not None else f"{value:.{precision}f}"


def _plain(value: float) -> str:
    """Render a float the way a default-format print shows it."""
    special = _special(value)
    if special is not None:
        return special
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values) if values else math.nan


def _sample_stdev(values: Sequence[float]) -> float:
    if len(values) < 2:
        return math.nan
    return statistics.stdev(values)


def _by_team_then_name(driver_prices: list[DriverPrice]) -> None:
    driver_prices.sort(
        key=lambda dp: (dp.driver.basic_data.team, dp.driver.basic_data.name)
    )


def _stream(out: TextIO | None) -> TextIO:
    return sys.stdout if out is None else out


@dataclass
class QuantumPricingModel:
    """Prices drivers from their record, team strength and popularity."""

    total_number_of_races: int = 0
    current_race: int = 0
    total_points_in_the_season: int = 0

    def new_complete_driver(self, basic_data: BasicDriverData) -> CompleteDriver:
        """Build a driver with every derived attribute filled in."""
        driver = CompleteDriver(basic_data=basic_data)
        driver.career_team_changes = metrics_v1.career_team_changes(driver)
        driver.points_vs_teammate = metrics_v1.points_vs_teammate(driver)
        driver.team_strength = metrics_v1.team_strength(
            driver, self.current_race, self.total_points_in_the_season
        )
        metrics_v1.apply_popularity_metrics(driver)
        driver.three_year_trend = metrics_v1.three_year_trend(driver)
        driver.overperformance_factor = metrics_v1.overperformance_factor(driver)
        driver.abilities = derive_abilities(driver)
        driver.performance_ratio = metrics_v1.performance_ratio(driver)
        driver.consistency = metrics_v1.consistency(driver)
        driver.market_popularity = metrics_v1.market_popularity(driver)
        return driver

    def calculate_driver_price(
        self, driver: CompleteDriver, out: TextIO | None = None
    ) -> DriverPrice:
        """Compute the fantasy price of a driver and its component breakdown."""
        stream = _stream(out)
        basic = driver.basic_data
        phase = metrics_v1.season_phase(driver)

        base_price = _round_half_away(15.0 + driver.normalized_team_strength * 5.0)
        print(basic.name, file=stream)
        print(basic.team_data.name, file=stream)
        print(_plain(base_price), file=stream)

        teammate_premium = max(2.0, driver.overperformance_factor * 2)
        performance_premium = driver.performance_ratio * 3.0
        consistency_value = driver.consistency * 3.0
        champion_premium = min(basic.championship_wins * 0.5, 3.0)
        trend_adjustment = driver.three_year_trend * 3.0
        popularity_premium = (driver.market_popularity - 0.5) * 2.0
        upgrade_adjustment = 1.0 if basic.team_data.recent_upgrades else 0.0

        team_change_adjustment = 0.0
        if basic.previous_team and basic.races_with_current_team < 5:
            team_change_adjustment = -2.0 + 0.4 * basic.races_with_current_team

        if phase is SeasonPhase.EARLY:
            season_phase_adjustment = trend_adjustment * 0.5
        elif phase is SeasonPhase.LATE:
            season_phase_adjustment = performance_premium * 0.5
        else:
            season_phase_adjustment = 0.0

        ability_score = _divide(math.fsum(driver.abilities.values()), len(driver.abilities))
        ability_premium = (ability_score - 0.5) * 5.0

        raw_price = (
            base_price
            + teammate_premium
            + performance_premium
            + champion_premium
            + trend_adjustment
            + popularity_premium
            + consistency_value
            + upgrade_adjustment
            + team_change_adjustment
            + season_phase_adjustment
            + ability_premium
        )
        if basic.is_rookie and not basic.seasons:
            raw_price = base_price

        breakdown = {
            "Base (Team Strength)": base_price,
            "Performance Premium": performance_premium,
            "Championship Premium": champion_premium,
            "Trend Adjustment": trend_adjustment,
            "Popularity Premium": popularity_premium,
            "Consistency Value": consistency_value,
            "Upgrade Adjustment": upgrade_adjustment,
            "Team Change Adjustment": team_change_adjustment,
            "Season Phase Adjustment": season_phase_adjustment,
            "Ability Premium": ability_premium,
            "Raw Price": raw_price,
        }
        final_price = self.apply_psychological_pricing(raw_price, driver.team_strength)
        breakdown["Final Price"] = final_price
        return DriverPrice(driver=driver, price=final_price, component_breakdown=breakdown)

    def apply_psychological_pricing(self, price: float, team_strength: float) -> float:
        """Anchor a raw price to a tier-dependent psychological price point."""
        if team_strength > 1.3:
            return _floor(price) + (0.9 if price > 20 else 0.5)
        if team_strength > 1.0:
            return _floor(price) + 0.5 if price > 15 else _floor(price)
        return _floor(price * 2) / 2

    def process_all_drivers(
        self, basic_drivers: Iterable[BasicDriverData], out: TextIO | None = None
    ) -> list[DriverPrice]:
        """Derive all drivers, normalise team strength across them, and price them."""
        drivers = [self.new_complete_driver(basic) for basic in basic_drivers]
        strengths = [driver.team_strength for driver in drivers]
        mean = _mean(strengths)
        std = _sample_stdev(strengths)
        for driver in drivers:
            driver.normalized_team_strength = _divide(driver.team_strength - mean, std)
        return [self.calculate_driver_price(driver, out) for driver in drivers]

    def process_single_driver(
        self, basic_data: BasicDriverData, out: TextIO | None = None
    ) -> DriverPrice:
        """Derive and price one driver without grid normalisation."""
        return self.calculate_driver_price(self.new_complete_driver(basic_data), out)

    def print_driver_attributes_table(
        self, driver_prices: list[DriverPrice], out: TextIO | None = None
    ) -> None:
        """Print derived attributes grouped by team; sorts the list in place."""
        stream = _stream(out)
        rule = "-" * 105
        print("\n=== DRIVER ATTRIBUTES ===", file=stream)
        print(rule, file=stream)
        print(
            f"{'DRIVER':<20} {'TEAM':<12} {'PERFORMANCE':<12} {'CONSISTENCY':<12} "
            f"{'POPULARITY':<12} {'TREND':<12}",
            file=stream,
        )
        print(rule, file=stream)

        _by_team_then_name(driver_prices)
        current_team = ""
        for dp in driver_prices:
            driver = dp.driver
            team = driver.basic_data.team
            if team != current_team:
                print(f"\n{team:<105}", file=stream)
                print(rule, file=stream)
                current_team = team
            print(
                f"{driver.basic_data.name:<20} {team:<12} "
                f"{_fixed(driver.performance_ratio, 2):<12} "
                f"{_fixed(driver.consistency, 2):<12} "
                f"{_fixed(driver.market_popularity, 2):<12} "
                f"{_fixed(driver.three_year_trend, 2):<12}",
                file=stream,
            )
        print(rule, file=stream)

    def print_driver_abilities_table(
        self, driver_prices: list[DriverPrice], out: TextIO | None = None
    ) -> None:
        """Print the main technical abilities grouped by team; sorts the list in place."""
        stream = _stream(out)
        rule = "-" * 95
        print("\n=== DRIVER TECHNICAL ABILITIES ===", file=stream)
        print(rule, file=stream)
        print(
            f"{'DRIVER':<20} {'WET WEATHER':<12} {'TIRE MGMT':<12} {'BRAKING':<12} "
            f"{'TECHNICAL':<12} {'RACE START':<12}",
            file=stream,
        )
        print(rule, file=stream)

        _by_team_then_name(driver_prices)
        current_team = ""
        for dp in driver_prices:
            driver = dp.driver
            team = driver.basic_data.team
            if team != current_team:
                print(f"\n{team:<95}", file=stream)
                print(rule, file=stream)
                current_team = team
            cells = " ".join(
                f"{_fixed(driver.abilities.get(key, 0.0), 2):<12}"
                for key in (
                    "WetWeather",
                    "TireManagement",
                    "BrakingStability",
                    "TechnicalCorners",
                    "RaceStart",
                )
            )
            print(f"{driver.basic_data.name:<20} {cells}", file=stream)
        print(rule, file=stream)

    def print_driver_prices(
        self, driver_prices: Sequence[DriverPrice], out: TextIO | None = None
    ) -> None:
        """Print prices grouped by team, strongest team first, with budget figures."""
        stream = _stream(out)
        rule = "-" * 75
        print("\n=== F1 FANTASY DRIVER PRICES ===", file=stream)
        print(rule, file=stream)
        print(
            f"{'DRIVER':<20} {'TEAM':<15} {'PRICE':<12} {'TEAM STRENGTH':<12} BUDGET TIER",
            file=stream,
        )
        print(rule, file=stream)

        by_team: dict[str, list[DriverPrice]] = {}
        for dp in driver_prices:
            by_team.setdefault(dp.driver.basic_data.team, []).append(dp)

        def average_strength(team: str) -> float:
            return _mean([dp.driver.team_strength for dp in by_team[team]])

        for team in sorted(by_team, key=average_strength, reverse=True):
            members = sorted(by_team[team], key=lambda dp: dp.price, reverse=True)
            print(f"\n{team:<75}", file=stream)
            print(rule, file=stream)
            for dp in members:
                basic = dp.driver.basic_data
                print(
                    f"{basic.name:<20} {basic.team:<15} ${_fixed(dp.price, 1):<12}M "
                    f"{_fixed(dp.driver.team_strength, 2):<12} {basic.team_data.budget_tier}",
                    file=stream,
                )

        average = _divide(math.fsum(dp.price for dp in driver_prices), len(driver_prices))
        print(rule, file=stream)
        print(f"\nAverage Driver Price: ${_fixed(average, 1)}M", file=stream)
        print(f"Recommended Team Budget: ${_fixed(average * 5, 1)}M", file=stream)

    def print_price_breakdown(
        self, driver_price: DriverPrice, out: TextIO | None = None
    ) -> None:
        """Print the non-zero price components of one driver."""
        stream = _stream(out)
        rule = "-" * 50
        print(
            f"\n=== PRICE BREAKDOWN FOR {driver_price.driver.basic_data.name} ===",
            file=stream,
        )
        print(rule, file=stream)
        for component in BREAKDOWN_ORDER:
            value = driver_price.component_breakdown.get(component)
            if value is None or (value == 0.0 and component not in _ALWAYS_SHOWN):
                continue
            if component == "Raw Price":
                print(rule, file=stream)
            special = _special(value)
            rendered = special if special is not None else f"{value:.2f}"
            print(f"{component:<25} ${rendered:>6}M", file=stream)