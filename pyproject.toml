[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nomkit"
version = "0.1.0"
description = "Airdrop accounting, snapshot generation, transfer destinations and a REST gateway for a Bitcoin-backed Cosmos chain"
requires-python = ">=3.10"
keywords = ["airdrop", "bech32", "ibc", "bitcoin", "cosmos", "rest", "snapshot"]
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
    "Topic :: Office/Business :: Financial",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
nomkit-snapshot = "nomkit.snapshot:main"
nomkit-rest = "nomkit.rest:main"

[tool.hatch.build.targets.wheel]
packages = ["nomkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
