[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dagconsensus"
version = "0.1.0"
description = "Vector clocks, validator weights and forkless-cause detection for DAG-based BFT consensus"
requires-python = ">=3.10"
dependencies = []
keywords = ["consensus", "dag", "bft", "vector-clock", "validators", "forkless-cause"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dagconsensus"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
