"""Persistent command history stored in a plain text file."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable, TextIO

HISTORY_FILENAME = ".pish_history"


def default_history_path() -> Path:
    """Return the history file in the current user's home directory."""
    try:
        import pwd

        home = pwd.getpwuid(os.getuid()).pw_dir
    except (ImportError, KeyError, AttributeError):
        home = str(Path.home())
    return Path(home) / HISTORY_FILENAME


class History:
    """A history file with one command per line."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = default_history_path()
        return self._path

    def _report(self, exc: OSError) -> None:
        reason = exc.strerror or str(exc)
        print(f"{self.path}: {reason}", file=sys.stderr)

    def add(self, args: Iterable[str]) -> None:
        """Append a command, its arguments joined by single spaces."""
        line = " ".join(args)
        try:
            with open(self.path, "a", encoding="utf-8") as handle:
                handle.write(f"{line}\n")
        except OSError as exc:
            self._report(exc)

    def entries(self) -> list[str]:
        """Return the stored commands, oldest first."""
        try:
            with open(self.path, encoding="utf-8") as handle:
                return [line.rstrip("\n") for line in handle]
        except FileNotFoundError:
            return []

    def print(self, out: TextIO | None = None) -> None:
        """Write each stored command preceded by its line number."""
        stream = out if out is not None else sys.stdout
        try:
            with open(self.path, encoding="utf-8") as handle:
                for number, line in enumerate(handle, start=1):
                    stream.write(f"{number} {line}")
        except FileNotFoundError:
            return
        stream.flush()

    def clear(self) -> None:
        """Empty the history file."""
        try:
            with open(self.path, "w", encoding="utf-8"):
                pass
        except OSError as exc:
            self._report(exc)