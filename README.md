# driverpricing

Price drivers for a motorsport fantasy game from publicly available
statistics: career records, recent seasons, race-by-race results and
team data.

## What is included

* `driverpricing.models_v1` holds the input records (`BasicDriverData`,
  `SeasonStats`, `RaceResult`, `TeamData`, `TeamSeasonHistory`) and the
  result records (`CompleteDriver`, `DriverPrice`). It also has
  `parse_driver` and `load_drivers`, which read drivers from decoded JSON
  or from a JSON file.
* `driverpricing.abilities_v1.derive_abilities` computes twelve technical
  abilities, each in [0, 1], from a driver's career record, racing style,
  specialties and weaknesses.
* `driverpricing.metrics_v1` computes the derived metrics: team strength,
  points share against the teammate, popularity figures, season phase,
  three-year trend, overperformance factor, performance ratio,
  consistency and market popularity.
* `driverpricing.pricing_v1.QuantumPricingModel` combines these into a
  price with psychological rounding. It also prints attribute, ability,
  price and price-breakdown tables.
* `driverpricing.models_v2` holds a second set of input records. It has
  per-season ratios (points per race, win, podium, points-finish and DNF
  rates, team share, teammate delta, championship percentage) and live
  window figures over the last five classified races (gain, volatility,
  top-five rate, fastest-lap rate, EWMA of points). It also has team
  figures (`strength`, `reliability`, `momentum`, `ceiling`),
  `grid_mean_ceiling`, engine and budget tier maps, and its own
  `parse_driver` and `load_drivers`.

## Example

```python
from driverpricing.models_v1 import load_drivers
from driverpricing.pricing_v1 import QuantumPricingModel

drivers = load_drivers("drivers.json")
model = QuantumPricingModel(24, 12, 1500)  # races, current race, season points
prices = model.process_all_drivers(drivers)
model.print_driver_attributes_table(prices)
model.print_driver_abilities_table(prices)
model.print_driver_prices(prices)
```

`process_all_drivers` normalises team strength across all drivers before
it prices them. For each driver it prints the name, the team name and the
base price. Every printing method takes an optional `out` stream, which
defaults to standard output.

```python
from driverpricing.models_v2 import grid_mean_ceiling, load_drivers

drivers = load_drivers("drivers.json")
season = drivers[0].seasons[0]
print(season.ppr(), season.gain_raw(), season.rec_raw())
print(grid_mean_ceiling(d.team_data for d in drivers))
```

The input file is a JSON array of driver objects. Keys match field names
case-insensitively, for example `Name`, `Team`, `Age`,
`ChampionshipWins`, `Seasons` (each holding `RecentRaces`),
`PrimaryStyle`, `Specialties`, `MarketPopularity` and `TeamData`.
Missing or null fields take their zero value. A value of the wrong type
raises `ValueError`.

## What it does not do

* There is no command-line program. The models are used from Python.
* `driverpricing.models_v2` provides the records and per-season and team
  figures only. It has no grid-wide z-scoring, no strength score and no
  price calculation.

## Running the tests

```
pip install .[test]
pytest
```