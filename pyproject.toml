[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "teamctx"
version = "0.2.0"
description = "Mine a Git repository's history for expertise, knowledge risks and co-change correlations, scan source imports and track session activity."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "git",
    "history",
    "expertise",
    "bus-factor",
    "code-ownership",
    "imports",
    "knowledge",
]
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
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["teamctx"]

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
