"""Technical abilities derived from a driver's career record and style."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from enum import Enum

from driverpricing.models_v1 import CompleteDriver, DriverStyle

logger = logging.getLogger(__name__)

ABILITY_KEYS = (
    "WetWeather",
    "TireManagement",
    "BrakingStability",
    "TechnicalCorners",
    "RaceStart",
    "QualifyingPace",
    "SetupAdaptability",
    "OvertakingSkill",
    "RaceConsistency",
    "ERSManagement",
    "FuelSaving",
    "SafetyCarRestart",
)

BASE_ABILITY = 0.7

_PRIMARY_STYLE = {
    DriverStyle.AGGRESSIVE.value: {
        "BrakingStability": 0.10, "RaceStart": 0.15, "TireManagement": -0.10,
        "OvertakingSkill": 0.10, "FuelSaving": -0.05,
    },
    DriverStyle.SMOOTH.value: {
        "TireManagement": 0.15, "TechnicalCorners": 0.10, "WetWeather": 0.05,
        "RaceStart": -0.05, "RaceConsistency": 0.10, "FuelSaving": 0.05,
    },
    DriverStyle.DEFENSIVE.value: {
        "BrakingStability": 0.10, "TechnicalCorners": 0.05, "RaceStart": 0.05,
        "RaceConsistency": 0.10,
    },
    DriverStyle.OVERTAKER.value: {
        "BrakingStability": 0.15, "RaceStart": 0.10, "TireManagement": -0.05,
        "OvertakingSkill": 0.15,
    },
}
_PRIMARY_UNIFORM = {DriverStyle.ALL_ROUNDER.value: 0.05, DriverStyle.ROOKIE.value: -0.05}

_SECONDARY_STYLE = {
    DriverStyle.AGGRESSIVE.value: {
        "BrakingStability": 0.05, "RaceStart": 0.07, "TireManagement": -0.05,
        "OvertakingSkill": 0.05,
    },
    DriverStyle.SMOOTH.value: {
        "TireManagement": 0.07, "TechnicalCorners": 0.05, "WetWeather": 0.02,
        "RaceConsistency": 0.05,
    },
    DriverStyle.DEFENSIVE.value: {
        "BrakingStability": 0.05, "TechnicalCorners": 0.02, "RaceConsistency": 0.05,
    },
    DriverStyle.OVERTAKER.value: {
        "BrakingStability": 0.07, "RaceStart": 0.05, "OvertakingSkill": 0.07,
    },
}
_SECONDARY_UNIFORM = {DriverStyle.ALL_ROUNDER.value: 0.02}

_SPECIALTY = {
    "Street": {"TechnicalCorners": 0.15, "BrakingStability": 0.10},
    "TechnicalCorners": {"TechnicalCorners": 0.15, "BrakingStability": 0.10},
    "WetWeather": {"WetWeather": 0.20, "BrakingStability": 0.05},
    "TechnicalTracks": {"TechnicalCorners": 0.15, "TireManagement": 0.05},
    "FastCorners": {"TechnicalCorners": 0.10, "TireManagement": 0.05},
    "RaceStart": {"RaceStart": 0.15},
    "TireManagement": {"TireManagement": 0.15},
    "OvertakingSkill": {"OvertakingSkill": 0.15, "RaceStart": 0.05},
    "RaceConsistency": {"RaceConsistency": 0.15},
    "ERSManagement": {"ERSManagement": 0.10},
    "FuelSaving": {"FuelSaving": 0.10},
    "SafetyCarRestart": {"SafetyCarRestart": 0.10},
    "QualifyingPace": {"QualifyingPace": 0.15, "SetupAdaptability": 0.05},
    "SetupAdaptability": {"SetupAdaptability": 0.15},
}

_WEAKNESS = {
    "Street": {"TechnicalCorners": -0.10},
    "TechnicalCorners": {"TechnicalCorners": -0.10},
    "WetWeather": {"WetWeather": -0.15},
    "TechnicalTracks": {"TechnicalCorners": -0.10},
    "FastCorners": {"TechnicalCorners": -0.05},
    "RaceStart": {"RaceStart": -0.10},
    "TireManagement": {"TireManagement": -0.10},
    "OvertakingSkill": {"OvertakingSkill": -0.10},
    "RaceConsistency": {"RaceConsistency": -0.10},
    "ERSManagement": {"ERSManagement": -0.10},
    "FuelSaving": {"FuelSaving": -0.10},
    "SafetyCarRestart": {"SafetyCarRestart": -0.10},
    "QualifyingPace": {"QualifyingPace": -0.10, "SetupAdaptability": -0.05},
    "SetupAdaptability": {"SetupAdaptability": -0.10},
}


def _style_key(style: DriverStyle | str) -> str:
    return style.value if isinstance(style, Enum) else style


def _shift_all(abilities: dict[str, float], amount: float) -> None:
    for key in abilities:
        abilities[key] += amount


def _apply(abilities: dict[str, float], deltas: Mapping[str, float]) -> None:
    for key, delta in deltas.items():
        abilities[key] += delta


def _apply_style(
    abilities: dict[str, float],
    style: str,
    table: Mapping[str, Mapping[str, float]],
    uniform: Mapping[str, float],
) -> None:
    if style in table:
        _apply(abilities, table[style])
    elif style in uniform:
        _shift_all(abilities, uniform[style])


def _apply_tags(
    abilities: dict[str, float],
    tags: Iterable[str],
    table: Mapping[str, Mapping[str, float]],
    kind: str,
) -> None:
    for tag in sorted(tags):
        deltas = table.get(tag)
        if deltas is None:
            logger.warning("Unknown %s: %s", kind, tag)
        else:
            _apply(abilities, deltas)


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def derive_abilities(driver: CompleteDriver) -> dict[str, float]:
    """Return the twelve technical abilities of a driver, each in [0, 1].

    Seasons are ordered newest first as a side effect.
    """
    basic = driver.basic_data
    abilities = dict.fromkeys(ABILITY_KEYS, BASE_ABILITY)

    experience = min(basic.career_starts / 150.0, 1.0)
    abilities["TireManagement"] += experience * 0.1
    abilities["TechnicalCorners"] += experience * 0.05

    _shift_all(abilities, min(basic.championship_wins * 0.03, 0.15))

    podium_ratio = basic.career_podiums / max(float(basic.career_starts), 1.0)
    technical_boost = min(podium_ratio * 3.0, 0.15)
    abilities["TechnicalCorners"] += technical_boost
    abilities["BrakingStability"] += technical_boost

    seasons = driver.seasons_by_recency()
    if seasons:
        _shift_all(abilities, min(seasons[0].points / 400.0, 1.0) * 0.1)

    primary = _style_key(basic.primary_style)
    secondary = _style_key(basic.secondary_style)
    _apply_style(abilities, primary, _PRIMARY_STYLE, _PRIMARY_UNIFORM)
    if secondary and secondary != primary:
        _apply_style(abilities, secondary, _SECONDARY_STYLE, _SECONDARY_UNIFORM)

    _apply_tags(abilities, driver.specialties, _SPECIALTY, "specialty")
    _apply_tags(abilities, driver.weaknesses, _WEAKNESS, "weakness")

    return {key: _round2(min(max(value, 0.0), 1.0)) for key, value in abilities.items()}