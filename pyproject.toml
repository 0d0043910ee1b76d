[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "threadwork"
version = "0.1.0"
description = "Building blocks for a caching HTTP/1.0 forward proxy, plus thread-synchronisation primitives and benchmarks"
requires-python = ">=3.10"
dependencies = [
    "h11",
]
keywords = [
    "proxy",
    "http",
    "cache",
    "sieve",
    "threads",
    "locks",
    "queue",
    "scheduler",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
threadwork-queuebench = "threadwork.queuebench:main"
threadwork-listswap = "threadwork.listswap:main"

[tool.hatch.build.targets.wheel]
packages = ["threadwork"]

[tool.hatch.build.targets.sdist]
include = [
    "threadwork",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
