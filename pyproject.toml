[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seabattle"
version = "1.0.0"
description = "Two-player networked Battleship: an HTTP lobby and WebSocket game server, with a Tk desktop client"
requires-python = ">=3.10"
keywords = ["battleship", "game", "board game", "websocket", "multiplayer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: X11 Applications",
    "Framework :: aiohttp",
    "Intended Audience :: End Users/Desktop",
    "Natural Language :: Russian",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]
dependencies = [
    "aiohttp",
    "websocket-client",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
seabattle-server = "seabattle.server:main"
seabattle-client = "seabattle.gui:main"

[tool.hatch.build.targets.wheel]
packages = ["seabattle"]

[tool.hatch.build.targets.sdist]
include = ["seabattle", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
