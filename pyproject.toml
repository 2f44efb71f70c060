[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "redlite"
version = "0.1.0"
description = "A small in-memory key-value server speaking a subset of the Redis protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "resp", "key-value", "in-memory", "database", "server"]
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
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
redlite = "redlite.main:main"

[tool.hatch.build.targets.wheel]
packages = ["redlite"]

[tool.pytest.ini_options]
addopts = "-ra"
