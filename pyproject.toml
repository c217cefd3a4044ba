[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sxlmaps"
version = "0.1.0"
description = "Terminal map browser and installer for Skater XL custom maps"
requires-python = ">=3.10"
keywords = ["skater-xl", "maps", "mods", "terminal", "tui", "installer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "blessed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sxlmaps = "sxlmaps.app:main"

[tool.hatch.build.targets.wheel]
packages = ["sxlmaps"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
