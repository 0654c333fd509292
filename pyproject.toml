[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tennisprice"
version = "0.1.0"
description = "Monte Carlo tennis match simulator that prices moneyline, handicap and total markets over HTTP"
requires-python = ">=3.10"
dependencies = []
keywords = ["tennis", "simulation", "monte-carlo", "odds", "betting", "markets"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tennisprice = "tennisprice.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tennisprice"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
