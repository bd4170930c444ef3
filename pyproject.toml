[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "procsim"
version = "0.1.0"
description = "Cycle-level simulator of an out-of-order Tomasulo processor pipeline driven by instruction traces"
requires-python = ">=3.10"
dependencies = []
keywords = ["tomasulo", "out-of-order", "pipeline", "simulator", "computer-architecture", "trace"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
procsim = "procsim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["procsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
