[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "growbackend"
version = "0.1.0"
description = "Backend building blocks for a grow-controller app: records, Redis-held controller state, Prometheus series, HTTP middleware, response caching and timelapse job helpers."
requires-python = ">=3.11"
keywords = ["http", "backend", "middleware", "redis", "prometheus", "jwt", "timelapse", "grow"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "redis",
    "pyyaml",
    "pyjwt",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["growbackend"]

[tool.hatch.build.targets.sdist]
include = ["growbackend", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
