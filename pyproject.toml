[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wizperiph"
version = "0.1.0"
description = "Memory-mapped peripheral models for emulating scientific calculator chipsets"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "calculator", "peripheral", "bcd", "memory-mapped io"]
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
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wizperiph"]

[tool.pytest.ini_options]
addopts = "-ra"
