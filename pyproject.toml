[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtosc"
version = "0.1.0"
description = "Open Sound Control serialization, port trees, dispatch and MIDI mapping"
requires-python = ">=3.10"
dependencies = []
keywords = ["osc", "open sound control", "audio", "midi", "dispatch", "serialization", "ring buffer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtosc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
