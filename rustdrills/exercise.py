"""Exercises: loading, compiling, running and checking their state."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

_RUSTC_COLOR_ARGS = ("--color", "always")
_RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, ignoring any error."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or binary."""

    stdout: str
    stderr: str


class CompileError(Exception):
    """Raised when an exercise fails to compile."""

    def __init__(self, output: ExerciseOutput, message: str = "compilation failed") -> None:
        super().__init__(message)
        self.output = output


class RunError(Exception):
    """Raised when a compiled exercise exits unsuccessfully."""

    def __init__(self, output: ExerciseOutput, message: str = "run failed") -> None:
        super().__init__(message)
        self.output = output


def _capture(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True, check=False)


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(result.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(result.stderr or b"").decode("utf-8", errors="replace"),
    )


def _lines(source: str) -> list[str]:
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _cargo_manifest(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _write_manifest(self, manifest_path: str) -> None:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if "NO_EMOJI" in os.environ
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            Path(manifest_path).write_text(_cargo_manifest(self.name), encoding="utf-8")
        except OSError as exc:
            raise OSError(message) from exc

    def _run_compiler(self) -> subprocess.CompletedProcess:
        source = str(self.path)
        if self.mode is Mode.COMPILE:
            return _capture(
                ["rustc", source, "-o", temp_file(), *_RUSTC_COLOR_ARGS, *_RUSTC_EDITION_ARGS]
            )
        if self.mode is Mode.TEST:
            return _capture(
                ["rustc", "--test", source, "-o", temp_file(),
                 *_RUSTC_COLOR_ARGS, *_RUSTC_EDITION_ARGS]
            )
        if self.mode is Mode.CLIPPY:
            self._write_manifest(CLIPPY_CARGO_TOML_PATH)
            # Build a binary too so the exercise can be run; a failure here
            # shows up again when clippy compiles.
            _capture(
                ["rustc", source, "-o", temp_file(), *_RUSTC_COLOR_ARGS, *_RUSTC_EDITION_ARGS]
            )
            # A clean is needed for clippy to report every lint.
            _capture(
                ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *_RUSTC_COLOR_ARGS]
            )
            return _capture(
                ["cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                 *_RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp"]
            )
        self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
        return _capture(["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH])

    def compile(self) -> CompiledExercise:
        """Compile the exercise; raise CompileError with the compiler output on failure."""
        result = self._run_compiler()
        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompileError(_output(result), f"compilation of {self} failed")

    def state(self) -> list[ContextLine]:
        """Return the lines around the pending marker, or an empty list when done."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return []
        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise ValueError(f"pending marker in {self} spans several lines")
        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return [
            ContextLine(line=line, number=index + 1, important=index == matched)
            for index, line in enumerate(lines)
            if first <= index <= last
        ]

    def looks_done(self) -> bool:
        """Return True when the pending marker has been removed."""
        return not self.state()


class CompiledExercise:
    """A successfully compiled exercise; removes its binary when closed."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise RunError with its output on failure."""
        mode = self.exercise.mode
        if mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        arg = "--show-output" if mode is Mode.TEST else ""
        result = _capture([temp_file(), arg])
        output = _output(result)
        if result.returncode != 0:
            raise RunError(output, f"running {self.exercise} failed")
        return output

    def close(self) -> None:
        """Remove the temporary binary."""
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        return [
            Exercise(name=entry["name"], path=Path(entry["path"]),
                     mode=Mode(entry["mode"]), hint=entry["hint"])
            for entry in data["exercises"]
        ]
    except KeyError as exc:
        raise ValueError(f"missing field {exc.args[0]!r} in {path}") from exc