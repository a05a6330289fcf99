[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clicksounds"
version = "0.1.0"
description = "Play configurable sound effects for keyboard and mouse events"
requires-python = ">=3.10"
keywords = ["sound", "keyboard", "mouse", "click", "typing", "audio", "effects"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Players",
]
dependencies = [
    "pygame",
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
clicksounds = "clicksounds.app:main"

[tool.hatch.build.targets.wheel]
packages = ["clicksounds"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
