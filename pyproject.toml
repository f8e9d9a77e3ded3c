[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "driverpricing"
version = "0.1.0"
description = "Fantasy-game driver pricing from season, team and race statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["fantasy", "motorsport", "formula 1", "pricing", "statistics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["driverpricing"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
