[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rustdrills"
version = "0.1.0"
description = "An exercise runner that compiles, runs, tests and tracks progress through small Rust practice exercises"
requires-python = ">=3.11"
keywords = ["exercises", "learning", "rust", "rustc", "clippy", "education"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]
dependencies = [
    "rich",
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
rustdrills = "rustdrills.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rustdrills"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
