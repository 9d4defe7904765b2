[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sgdktool"
version = "0.1.1"
description = "Helpers for SGDK-based Mega Drive / Genesis game development"
requires-python = ">=3.10"
keywords = ["sgdk", "megadrive", "genesis", "retro", "gamedev", "emulator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "tomlkit",
    "requests",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sgdktool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
