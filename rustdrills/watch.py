"""Watch mode: re-verify exercises whenever their files change."""

from __future__ import annotations

import os
import queue
import shlex
import subprocess
import sys
import threading
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

WATCH_DIR = "./exercises"
_POLL_SECONDS = 1.0
_DEBOUNCE_SECONDS = 0.2

_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """Reads commands typed while watch mode is running."""

    def __init__(self, hint: str | None = None, stream: TextIO | None = None) -> None:
        self.hint = hint
        self.quit_requested = threading.Event()
        self._stream = stream

    def handle(self, line: str) -> None:
        """Carry out one command line."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.quit_requested.set()
            print("Bye!")
        elif command == "help":
            print(_HELP)
        elif command.startswith("!"):
            self._execute(command[1:])
        else:
            print(f"unknown command: {command}")

    @staticmethod
    def _execute(cmd: str) -> None:
        parts = cmd.split()
        if not parts:
            print("no command provided")
            return
        try:
            subprocess.run(parts, check=False)
        except OSError as exc:
            print(f"failed to execute command `{cmd}`: {exc}")

    def start(self) -> threading.Thread:
        """Read commands on a background thread until input ends."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._loop, daemon=True)
        thread.start()
        return thread

    def _loop(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)


def _ends_with(path: Path, suffix: Path) -> bool:
    parts = suffix.parts
    return bool(parts) and path.parts[-len(parts):] == parts


def pending_after_change(
    exercises: Sequence[Exercise], changed_path: str | os.PathLike
) -> list[Exercise]:
    """Return the changed exercise first, then every other exercise not yet done."""
    changed = Path(changed_path)
    touched = next((e for e in exercises if _ends_with(changed, e.path)), None)
    rest = [
        e for e in exercises if not _ends_with(changed, e.path) and not e.looks_done()
    ]
    return ([touched] if touched is not None else []) + rest


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[str]) -> None:
        super().__init__()
        self._changes = changes

    def _record(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._changes.put(os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)


def _clear_screen() -> None:
    print("\x1bc")


def _drain(changes: queue.Queue[str], first: str) -> list[str]:
    """Collect the changes that arrive together with the first one, without repeats."""
    paths = [first]
    while True:
        try:
            path = changes.get(timeout=_DEBOUNCE_SECONDS)
        except queue.Empty:
            break
        if path not in paths:
            paths.append(path)
    return paths


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify on every edit until all are done or the user quits."""
    changes: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), WATCH_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as failed:
            shell = WatchShell(hint=failed.exercise.hint)
        shell.start()
        while True:
            try:
                first = changes.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                pass
            else:
                for changed in _drain(changes, first):
                    path = Path(changed)
                    if path.suffix != ".rs" or not path.exists():
                        continue
                    pending = pending_after_change(exercises, path.resolve())
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    try:
                        verify(pending, (num_done, len(exercises)), verbose, success_hints)
                        return WatchStatus.FINISHED
                    except VerificationFailed as failed:
                        shell.hint = failed.exercise.hint
            if shell.quit_requested.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()


__all__ = [
    "WATCH_DIR",
    "WatchShell",
    "WatchStatus",
    "pending_after_change",
    "watch",
    "shlex",
]