import subprocess

import pytest

from rustdrills.exercise import Exercise, Mode
from rustdrills.verify import (
    ExerciseFailed,
    VerificationFailed,
    prompt_for_completion,
    success_message,
    test,
    verify,
)

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


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


def make_exercise(tmp_path, name, content, mode=Mode.COMPILE, hint=""):
    path = tmp_path / f"{name}.rs"
    path.write_text(content, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


def test_success_messages(monkeypatch):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    assert success_message(Mode.COMPILE) == "The code is compiling!"
    assert success_message(Mode.TEST) == "The code is compiling, and the tests pass!"
    assert success_message(Mode.BUILD_SCRIPT) == "Build script works!"
    assert success_message(Mode.CLIPPY) == "The code is compiling, and 📎 Clippy 📎 is happy!"


def test_clippy_message_without_emoji(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    assert success_message(Mode.CLIPPY) == "The code is compiling, and Clippy is happy!"


def test_prompt_for_finished_exercise(tmp_path, capsys):
    exercise = make_exercise(tmp_path, "finished_exercise", FINISHED)
    assert prompt_for_completion(exercise, None, False) is True
    assert capsys.readouterr().out == ""


def test_prompt_for_pending_exercise(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = make_exercise(tmp_path, "pending_exercise", PENDING)
    assert prompt_for_completion(exercise, None, False) is False
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert "~*~ The code is compiling! ~*~" in out
    assert " 3 |  // I AM NOT DONE" in out
    assert " 5 |  fn main() {" in out
    assert "Output:" not in out
    assert "Hints:" not in out


def test_prompt_shows_output_and_hint(tmp_path, capsys):
    exercise = make_exercise(
        tmp_path, "pending_exercise", PENDING, mode=Mode.TEST, hint="look closer"
    )
    assert prompt_for_completion(exercise, "binary says hi", True) is False
    out = capsys.readouterr().out
    assert "Output:" in out
    assert "binary says hi" in out
    assert "Hints:" in out
    assert "look closer" in out
    assert f"Successfully tested {exercise}!" in out


def test_verify_all_done(tmp_path, toolchain, capsys):
    exercises = [
        make_exercise(tmp_path, "one", FINISHED),
        make_exercise(tmp_path, "two", FINISHED, mode=Mode.TEST),
    ]
    verify(exercises, (0, len(exercises)), False, False)
    err = capsys.readouterr().err
    assert "Progress:" in err
    assert "2/2" in err


def test_verify_empty_list(capsys):
    verify([], (0, 0), False, False)
    assert "Progress:" in capsys.readouterr().err


def test_verify_stops_at_pending(tmp_path, toolchain):
    pending = make_exercise(tmp_path, "pending", PENDING)
    later = make_exercise(tmp_path, "later", FINISHED)
    with pytest.raises(VerificationFailed) as info:
        verify([pending, later], (0, 2), False, False)
    assert info.value.exercise is pending
    assert all(str(later.path) not in call for call in toolchain.calls)


def test_verify_compile_failure(tmp_path, toolchain, capsys):
    toolchain.compile_code = 1
    toolchain.stderr = b"error: expected pattern"
    broken = make_exercise(tmp_path, "compFailure", FINISHED)
    with pytest.raises(VerificationFailed) as info:
        verify([broken], (0, 1), False, False)
    assert info.value.exercise is broken
    out = capsys.readouterr().out
    assert "error: expected pattern" in out
    assert f"Compiling of {broken} failed!" in out


def test_test_success_with_output(tmp_path, toolchain, capsys):
    toolchain.stdout = b"THIS TEST TOO SHALL PASS"
    exercise = make_exercise(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    test(exercise, True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out
    assert any("--show-output" in call for call in toolchain.calls)


def test_test_success_without_output(tmp_path, toolchain, capsys):
    toolchain.stdout = b"THIS TEST TOO SHALL PASS"
    exercise = make_exercise(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    test(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_test_does_not_prompt_for_pending(tmp_path, toolchain, capsys):
    exercise = make_exercise(tmp_path, "pending_test_exercise", PENDING, mode=Mode.TEST)
    test(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_test_failure(tmp_path, toolchain, capsys):
    toolchain.run_code = 101
    toolchain.stdout = b"assertion failed"
    exercise = make_exercise(tmp_path, "testNotPassed", FINISHED, mode=Mode.TEST)
    with pytest.raises(ExerciseFailed) as info:
        test(exercise, False)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert "assertion failed" in out
    assert f"Testing of {exercise} failed!" in out