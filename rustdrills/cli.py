"""Command line entry point: list, run, verify and watch exercises."""

from __future__ import annotations

import argparse
import json
import subprocess
import sys
import time
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .exercise import Exercise, load_exercises
from .project import RustAnalyzerProject
from .run import reset, run
from .ui import no_emoji
from .verify import ExerciseFailed, VerificationFailed, verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"
RESULT_PATH = ".github/result/check_result.json"

DEFAULT_OUT = """Thanks for installing rustdrills!

Is this your first time? Don't worry, these drills were made for beginners! We
are going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how the drills work:

1. The central concept is that you solve exercises. These exercises usually
   have some sort of syntax error in them, which will cause them to fail
   compilation or testing. Sometimes there's a logic error instead of a syntax
   error. No matter what error, it's your job to find it and fix it! You'll
   know when you fixed it because then, the exercise will compile and the tool
   will be able to move on to the next exercise.
2. If you run in watch mode (which we recommend), it'll automatically start
   with the first exercise. Don't get confused by an error message popping up
   as soon as you start! This is part of the exercise that you're supposed to
   solve, so open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by
   typing 'hint' (in watch mode), or running `rustdrills hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue in the
   project's tracker. Other learners may help you out too!
5. If you want to use `rust-analyzer` with exercises, which provides features
   like autocompletion, run the command `rustdrills lsp`.

Got all that? Great! To get started, run `rustdrills watch` in order to get the
first exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""

WELCOME = """       welcome to...
  ____  _   _ ____ _____ ____  ____  ___ _     _     ____
 |  _ \\| | | / ___|_   _|  _ \\|  _ \\|_ _| |   | |   / ___|
 | |_) | | | \\___ \\ | | | | | | |_) || || |   | |   \\___ \\
 |  _ <| |_| |___) || | | |_| |  _ < | || |___| |___ ___) |
 |_| \\_\\\\___/|____/ |_| |____/|_| \\_\\___|_____|_____|____/"""


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals of a grading run."""

    total_exercations: int
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The report written after grading every exercise."""

    statistics: ExerciseStatistics
    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None

    def to_json(self) -> str:
        """Serialise the report as indented JSON."""
        data = {
            "exercises": [asdict(result) for result in self.exercises],
            "user_name": self.user_name,
            "statistics": asdict(self.statistics),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


class ExerciseNotFound(LookupError):
    """Raised when no exercise matches the requested name."""


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Return the named exercise, or the first unfinished one for "next"."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise ExerciseNotFound(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise ExerciseNotFound(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> list[str]:
    """Return the lines of the exercise listing, ending with the progress line."""
    lines: list[str] = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    patterns = [p for p in (filter or "").lower().split(",") if p.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(p in exercise.name or p in fname for p in patterns)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or filter is None):
            if paths:
                lines.append(fname)
            elif names:
                lines.append(exercise.name)
            else:
                lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}")
    total = len(exercises)
    percentage = done_count / total * 100.0 if total else float("nan")
    lines.append(
        f"Progress: You completed {done_count} / {total} exercises ({percentage:.1f} %)."
    )
    return lines


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Sequence[Exercise],
    verbose: bool = True,
    output_path: str | Path = RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise, record which pass, and write the report to output_path."""
    started = _now()
    total = len(exercises)
    report = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    passed = 0
    for exercise in exercises:
        exercise_started = _now()
        try:
            run(exercise, True)
        except ExerciseFailed:
            ok = False
            print(f"{exercise.name} failed")
        else:
            ok = True
            passed += 1
            print(f"{exercise.name} passed")
        print(f"Total exercises: {total}")
        print(f"Exercises passed so far: {passed}")
        print(f"Time spent on this exercise: {_now() - exercise_started} s")
        report.exercises.append(ExerciseResult(name=exercise.name, result=ok))
        if ok:
            report.statistics.total_succeeds += 1
        else:
            report.statistics.total_failures += 1
    elapsed = _now() - started
    print(f"=============== Grading finished, total time: {elapsed} s; ===============")
    report.statistics.total_time = elapsed
    Path(output_path).write_text(report.to_json(), encoding="utf-8")
    return report


def rustc_exists() -> bool:
    """Return True when `rustc --version` runs successfully."""
    try:
        result = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL, check=False)
    except OSError:
        return False
    return result.returncode == 0


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="rustdrills",
        description="Small exercises to get you used to writing and reading Rust code",
    )
    parser.add_argument("--nocapture", action="store_true",
                        help="show outputs from the test exercises")
    parser.add_argument("-v", "--version", action="store_true",
                        help="show the executable version")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("verify", help="verify all exercises in the recommended order")
    watch_parser = commands.add_parser("watch", help="rerun verify when files are edited")
    watch_parser.add_argument("--success-hints", action="store_true",
                              help="show hints on success")
    for name, text in (
        ("run", "run or test a single exercise"),
        ("reset", "reset a single exercise with git stash"),
        ("hint", "show the hint for an exercise"),
    ):
        command = commands.add_parser(name, help=text)
        command.add_argument("name", help="the name of the exercise")
    list_parser = commands.add_parser("list", help="list the available exercises")
    list_parser.add_argument("-p", "--paths", action="store_true",
                             help="show only the paths of the exercises")
    list_parser.add_argument("-n", "--names", action="store_true",
                             help="show only the names of the exercises")
    list_parser.add_argument("-f", "--filter",
                             help="comma separated patterns to match exercise names")
    list_parser.add_argument("-u", "--unsolved", action="store_true",
                             help="display only exercises not yet solved")
    list_parser.add_argument("-s", "--solved", action="store_true",
                             help="display only exercises that have been solved")
    commands.add_parser("lsp", help="enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="grade every exercise and write a report")
    return parser


def _print_list(args: argparse.Namespace, exercises: Sequence[Exercise]) -> int:
    lines = list_exercises(
        exercises, args.paths, args.names, args.filter, args.unsolved, args.solved
    )
    try:
        for line in lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _lsp() -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?")
        return 1
    project.exercises_to_json()
    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercises folder")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _watch(exercises: Sequence[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print("Most likely you've run out of disk space or your 'inotify limit' has been reached.")
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if no_emoji() else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print("If you want to continue working on the exercises at a later point, "
              "you can simply run `rustdrills watch` again")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit code."""
    args = _build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0
    if args.command is None:
        print(f"\n{WELCOME}\n")
    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exercises directory")
        print("Try `cd rustdrills/`!")
        return 1
    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0
    if args.command == "list":
        return _print_list(args, exercises)
    if args.command in ("run", "reset", "hint"):
        try:
            exercise = find_exercise(args.name, exercises)
        except ExerciseNotFound as exc:
            print(exc)
            return 1
        if args.command == "hint":
            print(exercise.hint)
            return 0
        try:
            if args.command == "run":
                run(exercise, verbose)
            else:
                reset(exercise)
        except ExerciseFailed:
            return 1
        return 0
    if args.command == "verify":
        try:
            verify(exercises, (0, len(exercises)), verbose, False)
        except VerificationFailed:
            return 1
        return 0
    if args.command == "cicvverify":
        cicv_verify(exercises, verbose)
        return 0
    if args.command == "lsp":
        return _lsp()
    return _watch(exercises, verbose, args.success_hints)


if __name__ == "__main__":
    sys.exit(main())