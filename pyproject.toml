[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "x16core"
version = "0.49.0"
description = "A 65C02/65C816 CPU core and cartridge image tools for the Commander X16 computer"
requires-python = ">=3.10"
dependencies = []
keywords = ["6502", "65c02", "65c816", "emulator", "commander-x16", "cpu", "cartridge"]
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
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["x16core"]

[tool.pytest.ini_options]
addopts = "-ra"
