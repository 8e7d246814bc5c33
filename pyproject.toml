[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "raftlite"
version = "0.7.0"
description = "Raft membership-change handling with joint consensus, protocol types and a data-driven test runner."
requires-python = ">=3.10"
dependencies = []
keywords = ["raft", "consensus", "distributed-systems", "joint-consensus", "datadriven"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["raftlite"]

[tool.pytest.ini_options]
addopts = "-ra"
