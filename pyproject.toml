[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zapcore"
version = "0.1.0"
description = "Core primitives for structured, leveled logging: levels, fields, encoders, sampling, hooks and tees."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "structured-logging", "json", "sampling", "encoder"]
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
    "Topic :: System :: Logging",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest", "pyyaml"]

[tool.hatch.build.targets.wheel]
packages = ["zapcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
