"""Running a single exercise and resetting it."""

from __future__ import annotations

import os
import subprocess

from .exercise import CompileError, Exercise, Mode, RunError
from .ui import success, warn
from .verify import ExerciseFailed, _spinner, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run, or test, one exercise; raise ExerciseFailed on failure."""
    if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
        test(exercise, verbose)
    else:
        _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Stash local changes to the exercise file with git."""
    try:
        return subprocess.Popen(["git", "stash", "--", os.fspath(exercise.path)])
    except OSError as exc:
        raise ExerciseFailed(exercise, f"could not reset {exercise}: {exc}") from exc


def _compile_and_run(exercise: Exercise) -> None:
    error: RunError | None = None
    with _spinner(f"Compiling {exercise}...") as status:
        try:
            compiled = exercise.compile()
        except CompileError as exc:
            status.stop()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(exc.output.stderr)
            raise ExerciseFailed(exercise, f"compiling {exercise} failed") from exc
        with compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as exc:
                output, error = exc.output, exc

    if error is not None:
        print(output.stdout)
        print(output.stderr)
        warn(f"Ran {exercise} with errors")
        raise ExerciseFailed(exercise, f"running {exercise} failed") from error
    print(output.stdout)
    success(f"Successfully ran {exercise}")