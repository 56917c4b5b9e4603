# rustdrills

`rustdrills` walks you through a set of small Rust exercises. Each exercise is
a `.rs` file with a deliberate mistake in it. When you fix the mistake, the exercise
compiles, its tests pass, or Clippy stops complaining. When you are happy with
your solution, delete the `// I AM NOT DONE` marker and the next exercise comes up.

## Requirements

- Python 3.11 or newer
- A Rust toolchain on your `PATH`. You need `rustc`, and `cargo` for the Clippy and
  build-script exercises. Every command except `--version` checks that
  `rustc --version` runs and exits with status 1 if it does not.
- `git`, if you want to use `reset`

## Installation

```
pip install .
```

## Exercise directory

Run every command from the exercise directory, the one that holds `info.toml`.
If there is no `info.toml` in the current directory, the command prints a
message and exits with status 1.

`info.toml` lists the exercises in order. Each `[[exercises]]` entry has these
fields:

- `name`
- `path`
- `mode`: one of `compile`, `test`, `clippy` or `buildscript`
- `hint`

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the marker comment when you are done."
```

An exercise counts as done when its file no longer has a line matching
`// I AM NOT DONE`.

## Usage

```
rustdrills                   # welcome text and a short introduction
rustdrills watch             # verify, then re-verify whenever a file under ./exercises changes
rustdrills verify            # verify all exercises in order, stop at the first unfinished one
rustdrills run NAME          # compile and run (or test) a single exercise
rustdrills run next          # the first exercise that is not done yet
rustdrills hint NAME         # print the hint for an exercise
rustdrills reset NAME        # run `git stash -- <path>` on the exercise file
rustdrills list              # list exercises with their status
rustdrills lsp               # write rust-project.json for rust-analyzer
rustdrills cicvverify        # grade all exercises and write a JSON report
rustdrills --version         # or -v
```

Put `--nocapture` before the subcommand to see the output of test exercises.

`run`, `hint` and `reset` exit with status 1 when no exercise has the given
name. `run next` also exits with status 1 when every exercise is already done.
`run` and `verify` exit with status 1 when an exercise fails.

### Watch mode

Watch mode verifies the exercises in order. After that, every time a `.rs` file
under `./exercises` is created or modified, it verifies again. It starts with the
changed exercise and then goes through the others that are not done yet. Watch
mode ends when every exercise is done or when you type `quit`.

While watch mode runs, you can type these commands:

- `hint`: print the hint for the exercise that failed last
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a program, for example `!rustc --explain E0381`
- `help`: show this list

`rustdrills watch --success-hints` also prints an exercise's hint after it succeeds.

### Listing

```
rustdrills list --paths          # paths only        (-p)
rustdrills list --names          # names only        (-n)
rustdrills list --filter vec,str # comma separated patterns matched against names and paths (-f)
rustdrills list --solved         # only done exercises      (-s)
rustdrills list --unsolved       # only pending exercises   (-u)
```

The listing ends with a progress line that gives the number and percentage of
exercises done.

### rust-analyzer

`rustdrills lsp` takes the standard library sources from `RUST_SRC_PATH`. If
that variable is not set, it asks `rustc --print sysroot` for them. It adds a
crate for every `.rs` file under `./exercises` and writes `./rust-project.json`.

### Grading

`rustdrills cicvverify` runs every exercise one after another, as `run` would.
It prints a line for each exercise and counts how many pass. It writes a JSON
report to `.github/result/check_result.json`, and that directory must already
exist. The report lists each exercise's `name` and `result`, a `user_name` that
is always `null`, and `statistics` with `total_exercations`, `total_succeeds`,
`total_failures` and `total_time` in seconds.

### Output

Set `NO_EMOJI` in the environment to get plain-text markers instead of emoji.

## Using it as a library

```python
from rustdrills.exercise import load_exercises
from rustdrills.cli import list_exercises

exercises = load_exercises("info.toml")
for exercise in exercises:
    print(exercise.name, "done" if exercise.looks_done() else "pending")

print("\n".join(list_exercises(exercises, unsolved=True)))
```

`Exercise.state()` returns the lines around the `I AM NOT DONE` marker as
`ContextLine` objects. It returns an empty list when the exercise is done.
`Exercise.compile()` raises `CompileError` on failure. Otherwise it returns a
`CompiledExercise`, a context manager whose `run()` raises `RunError` when the
binary fails. `rustdrills.verify.verify` raises `VerificationFailed` with the
first unfinished exercise. `rustdrills.run.run` raises `ExerciseFailed`.

## What it does not do

The package ships no exercises. It only runs the ones listed in the `info.toml`
of the directory you start it in. It does not compile Rust itself. All building,
testing and linting is done by the `rustc` and `cargo` found on your `PATH`.