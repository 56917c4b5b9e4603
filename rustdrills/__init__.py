"""Compile, run, test and track progress through small Rust exercises listed in info.toml."""

__version__ = "0.1.0"