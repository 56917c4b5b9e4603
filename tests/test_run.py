import subprocess
from unittest import mock

import pytest

from rustdrills.exercise import Exercise, Mode
from rustdrills.run import reset, run
from rustdrills.verify import ExerciseFailed

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "fn main() {\n}\n"


class FakeToolchain:
    def __init__(self, compile_code=0, run_code=0, stdout=b"", stderr=b""):
        self.compile_code = compile_code
        self.run_code = run_code
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            return subprocess.CompletedProcess(args, self.compile_code, b"", self.stderr)
        return subprocess.CompletedProcess(args, self.run_code, self.stdout, self.stderr)


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def make_exercise(tmp_path, name, content, mode=Mode.COMPILE):
    path = tmp_path / f"{name}.rs"
    path.write_text(content, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint="")


def test_run_compile_success(tmp_path, toolchain, capsys):
    toolchain.stdout = b"hello from the binary"
    exercise = make_exercise(tmp_path, "compSuccess", FINISHED)
    run(exercise, False)
    out = capsys.readouterr().out
    assert "hello from the binary" in out
    assert f"Successfully ran {exercise}" in out
    assert toolchain.calls[0][0] == "rustc"


def test_run_compile_failure(tmp_path, toolchain, capsys):
    toolchain.compile_code = 1
    toolchain.stderr = b"error: expected pattern"
    exercise = make_exercise(tmp_path, "compFailure", FINISHED)
    with pytest.raises(ExerciseFailed) as info:
        run(exercise, False)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert "error: expected pattern" in out
    assert f"Compilation of {exercise} failed!" in out
    assert len(toolchain.calls) == 1


def test_run_binary_failure(tmp_path, toolchain, capsys):
    toolchain.run_code = 1
    toolchain.stdout = b"partial output"
    exercise = make_exercise(tmp_path, "panics", FINISHED)
    with pytest.raises(ExerciseFailed):
        run(exercise, False)
    out = capsys.readouterr().out
    assert "partial output" in out
    assert f"Ran {exercise} with errors" in out


def test_run_compile_exercise_does_not_prompt(tmp_path, toolchain, capsys):
    exercise = make_exercise(tmp_path, "pending_exercise", PENDING)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(tmp_path, toolchain, capsys):
    exercise = make_exercise(tmp_path, "pending_test_exercise", PENDING, mode=Mode.TEST)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_with_and_without_output(tmp_path, toolchain, capsys):
    toolchain.stdout = b"THIS TEST TOO SHALL PASS"
    exercise = make_exercise(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    run(exercise, True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out
    run(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_run_test_failure(tmp_path, toolchain):
    toolchain.run_code = 101
    exercise = make_exercise(tmp_path, "testNotPassed", FINISHED, mode=Mode.TEST)
    with pytest.raises(ExerciseFailed):
        run(exercise, False)


def test_reset_stashes_file(tmp_path):
    exercise = make_exercise(tmp_path, "intro1", FINISHED)
    with mock.patch("subprocess.Popen") as popen:
        result = reset(exercise)
    popen.assert_called_once_with(["git", "stash", "--", str(exercise.path)])
    assert result is popen.return_value


def test_reset_failure(tmp_path):
    exercise = make_exercise(tmp_path, "intro1", FINISHED)
    with mock.patch("subprocess.Popen", side_effect=FileNotFoundError("git")):
        with pytest.raises(ExerciseFailed) as info:
            reset(exercise)
    assert info.value.exercise is exercise