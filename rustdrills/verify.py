"""Checking exercises: compile, run or test them and report progress."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.status import Status
from rich.text import Text

from .exercise import CompiledExercise, CompileError, Exercise, Mode, RunError
from .ui import no_emoji, success, warn

_BAR_WIDTH = 60


class ExerciseFailed(Exception):
    """Raised when an exercise fails to compile, run or pass its tests."""

    def __init__(self, exercise: Exercise, message: str | None = None) -> None:
        super().__init__(message or f"{exercise} failed")
        self.exercise = exercise


class VerificationFailed(Exception):
    """Raised by verify with the first exercise that is not finished."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} is not done yet")
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


@contextmanager
def _spinner(message: str) -> Iterator[Status]:
    status = Console(stderr=True).status(message)
    status.start()
    try:
        yield status
    finally:
        status.stop()


class _ProgressBar:
    """A plain progress line written to standard error."""

    def __init__(self, total: int, position: int) -> None:
        self.total = total
        self.position = position

    def _bar(self) -> str:
        if self.total <= 0:
            filled = _BAR_WIDTH
        else:
            filled = min(_BAR_WIDTH, _BAR_WIDTH * self.position // self.total)
        if filled >= _BAR_WIDTH:
            return "#" * _BAR_WIDTH
        return "#" * filled + ">" + "-" * (_BAR_WIDTH - filled - 1)

    def show(self, percentage: float) -> None:
        sys.stderr.write(
            f"Progress: [{self._bar()}] {self.position}/{self.total} ({percentage:.1f} %)\n"
        )
        sys.stderr.flush()

    def advance(self, percentage: float) -> None:
        self.position += 1
        self.show(percentage)


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationFailed at the first unfinished one."""
    num_done, total = progress
    bar = _ProgressBar(total, num_done)
    percentage = num_done / total * 100.0 if total else 100.0
    bar.show(percentage)
    for exercise in exercises:
        try:
            if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
                done = _compile_and_test(exercise, True, verbose, success_hints)
            elif exercise.mode is Mode.COMPILE:
                done = _compile_and_run_interactively(exercise, success_hints)
            else:
                done = _compile_only(exercise, success_hints)
        except ExerciseFailed:
            done = False
        if not done:
            raise VerificationFailed(exercise)
        if total:
            percentage += 100.0 / total
        bar.advance(percentage)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's tests; raise ExerciseFailed on failure."""
    _compile_and_test(exercise, False, verbose, False)


def _compile(exercise: Exercise, status: Status) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompileError as exc:
        status.stop()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise ExerciseFailed(exercise, f"compiling {exercise} failed") from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status):
            pass
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    error: RunError | None = None
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as exc:
                output, error = exc.output, exc
    if error is not None:
        warn(f"Ran {exercise} with errors")
        print(output.stdout)
        print(output.stderr)
        raise ExerciseFailed(exercise, f"running {exercise} failed") from error
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    error: RunError | None = None
    with _spinner(f"Testing {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            try:
                output = compiled.run()
            except RunError as exc:
                output, error = exc.output, exc
    if error is not None:
        warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(output.stdout)
        raise ExerciseFailed(exercise, f"testing {exercise} failed") from error
    if verbose:
        print(output.stdout)
    if interactive:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def success_message(mode: Mode) -> str:
    """Return the message shown when an exercise of this mode succeeds."""
    if mode is Mode.COMPILE:
        return "The code is compiling!"
    if mode is Mode.TEST:
        return "The code is compiling, and the tests pass!"
    if mode is Mode.CLIPPY:
        if no_emoji():
            return "The code is compiling, and Clippy is happy!"
        return "The code is compiling, and 📎 Clippy 📎 is happy!"
    return "Build script works!"


_SUCCESS_LINES = {
    Mode.COMPILE: "Successfully ran {}!",
    Mode.TEST: "Successfully tested {}!",
    Mode.CLIPPY: "Successfully compiled {}!",
    Mode.BUILD_SCRIPT: "Successfully compiled {}!",
}


def _separator() -> Text:
    return Text("=" * 20, style="bold")


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done; otherwise show where to continue and return False."""
    context = exercise.state()
    if not context:
        return True
    success(_SUCCESS_LINES[exercise.mode].format(exercise))

    message = success_message(exercise.mode)
    console = _console()
    print()
    if no_emoji():
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(_separator())
        print(prompt_output)
        console.print(_separator())
        print()
    if success_hints:
        print("Hints:")
        console.print(_separator())
        print(exercise.hint)
        console.print(_separator())
        print()

    print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in context:
        line = (context_line.line, "bold") if context_line.important else context_line.line
        console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"), " ", ("|", "blue"), "  ", line
            )
        )
    return False