"""The interactive and script-driven command interpreter."""

from __future__ import annotations

import os
import re
import subprocess
import sys
from typing import NoReturn, Sequence, TextIO

from pish.history import History
from pish.parsing import (
    Continuation,
    check_for_continuation,
    join_continuation,
    parse_command,
    split_conditional,
    split_pipe,
    split_sequence,
    trim_whitespace,
)

_EXEC_FAILURE = 127
_SYNTAX_ERROR = 2
_INTEGER = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


class ShellExit(Exception):
    """Raised when the shell is asked to terminate with a status code."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def _user_name() -> str:
    try:
        import pwd

        return pwd.getpwuid(os.getuid()).pw_name
    except (ImportError, KeyError, AttributeError):
        import getpass

        return getpass.getuser()


def _decode_wait_status(status: int) -> int:
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    if os.WIFSIGNALED(status):
        return 128 + os.WTERMSIG(status)
    return 1


def _parse_exit_code(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    value = min(max(int(text.lstrip(" \t\n\v\f\r")), _LONG_MIN), _LONG_MAX)
    return value & 255


class Shell:
    """Runs command chains with pipes, sequences, conditionals and subshells."""

    def __init__(
        self,
        history: History | None = None,
        script_mode: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.history = history if history is not None else History()
        self.script_mode = script_mode
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.last_exit_status = 0
        self.previous_dir: str | None = None

    # -- output helpers -------------------------------------------------

    def _flush(self) -> None:
        for stream in (self.stdout, self.stderr, sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (AttributeError, ValueError, OSError):
                pass

    def _report(self, prefix: str, exc: OSError) -> None:
        reason = exc.strerror or str(exc)
        self.stderr.write(f"{prefix}: {reason}\n")
        self.stderr.flush()

    def _usage_error(self) -> None:
        self.stderr.write("pish: Usage error\n")
        self.stderr.flush()

    def prompt(self) -> None:
        """Show the prompt unless running a script."""
        if self.script_mode:
            return
        cwd = os.getcwd()
        self.stdout.write(f"\033[0;35m{_user_name()}@pish \033[0;34m{cwd}\033[0m$ ")
        self.stdout.flush()

    # -- process handling -----------------------------------------------

    def run(self, args: Sequence[str]) -> int:
        """Run an external program and record its exit status."""
        if not args:
            self.last_exit_status = 0
            return 0
        self._flush()
        try:
            completed = subprocess.run(list(args), check=False)
        except OSError as exc:
            self._report(args[0], exc)
            self.last_exit_status = _EXEC_FAILURE
            return self.last_exit_status
        code = completed.returncode
        self.last_exit_status = 128 - code if code < 0 else code
        return self.last_exit_status

    def _child(
        self, chain: str, stdin_fd: int | None = None, stdout_fd: int | None = None
    ) -> NoReturn:
        status = 1
        try:
            if stdin_fd is not None:
                os.dup2(stdin_fd, 0)
                os.close(stdin_fd)
            if stdout_fd is not None:
                os.dup2(stdout_fd, 1)
                os.close(stdout_fd)
            self.stdout = open(1, "w", encoding="utf-8", closefd=False)
            self.stderr = open(2, "w", encoding="utf-8", closefd=False)
            status = self.execute_chain(chain)
        except ShellExit as exc:
            status = exc.code
        except BaseException:
            status = 1
        finally:
            self._flush()
            os._exit(status & 255)

    def _wait(self, pid: int) -> int:
        try:
            _, status = os.waitpid(pid, 0)
        except OSError as exc:
            self._report("waitpid", exc)
            return 1
        return _decode_wait_status(status)

    def run_subshell(self, command: str) -> int:
        """Run a chain in a child process and return its status."""
        self._flush()
        try:
            pid = os.fork()
        except OSError as exc:
            self._report("fork", exc)
            return 1
        if pid == 0:
            self._child(command)
        return self._wait(pid)

    def run_pipe(self, left: str, right: str) -> int:
        """Connect the output of one chain to the input of another."""
        self._flush()
        try:
            read_fd, write_fd = os.pipe()
        except OSError as exc:
            self._report("pipe", exc)
            return 1
        try:
            left_pid = os.fork()
        except OSError as exc:
            self._report("fork", exc)
            os.close(read_fd)
            os.close(write_fd)
            return 1
        if left_pid == 0:
            os.close(read_fd)
            self._child(left, stdout_fd=write_fd)
        try:
            right_pid = os.fork()
        except OSError as exc:
            self._report("fork", exc)
            os.close(read_fd)
            os.close(write_fd)
            return 1
        if right_pid == 0:
            os.close(write_fd)
            self._child(right, stdin_fd=read_fd)
        os.close(read_fd)
        os.close(write_fd)
        try:
            os.waitpid(left_pid, 0)
            _, status = os.waitpid(right_pid, 0)
        except OSError as exc:
            self._report("waitpid", exc)
            return 1
        return os.WEXITSTATUS(status) if os.WIFEXITED(status) else 1

    # -- built-ins --------------------------------------------------------

    def _cd(self, args: list[str]) -> int:
        if len(args) != 2:
            self._usage_error()
            return 1
        cwd = os.getcwd()
        target = args[1]
        if target == "-":
            if not self.previous_dir:
                self.stdout.write(f"{cwd}\n")
                return 0
            destination = self.previous_dir
            self.previous_dir = cwd
            try:
                os.chdir(destination)
            except OSError as exc:
                self._report("cd", exc)
                self.previous_dir = destination
                return 1
            self.stdout.write(f"{os.getcwd()}\n")
            return 0
        self.previous_dir = cwd
        try:
            os.chdir(target)
        except OSError as exc:
            self._report("cd", exc)
            return 1
        return 0

    def _exit(self, args: list[str]) -> int:
        if len(args) > 2:
            self._usage_error()
            return 1
        if len(args) == 2:
            code = _parse_exit_code(args[1])
            if code is None:
                self.stderr.write("pish: exit: numeric argument required\n")
                return _SYNTAX_ERROR
            raise ShellExit(code)
        raise ShellExit(self.last_exit_status)

    def _history(self, args: list[str]) -> int:
        if len(args) == 1:
            self.history.print(self.stdout)
            return 0
        if len(args) == 2 and args[1] == "-c":
            self.history.clear()
            return 0
        self._usage_error()
        return 1

    def _exec(self, args: list[str]) -> int:
        if len(args) < 2:
            self._usage_error()
            return 1
        self._flush()
        try:
            os.execvp(args[1], args[1:])
        except OSError as exc:
            self._report(args[1], exc)
        raise ShellExit(_EXEC_FAILURE)

    def _simple(self, command: str) -> int:
        args = parse_command(command)
        if not args:
            return 0
        builtins = {
            "cd": self._cd,
            "exit": self._exit,
            "history": self._history,
            "exec": self._exec,
        }
        builtin = builtins.get(args[0])
        if builtin is not None:
            return builtin(args)
        return self.run(args)

    # -- chains -------------------------------------------------------------

    def execute_chain(self, chain: str) -> int:
        """Execute a command line and return its exit status."""
        pipe = split_pipe(chain)
        if pipe is not None:
            return self.run_pipe(*pipe)

        sequence = split_sequence(chain)
        if sequence is not None:
            self.execute_chain(sequence[0])
            return self.execute_chain(sequence[1])

        conditional = split_conditional(chain)
        if conditional is not None:
            left, operator, right = conditional
            status = self.execute_chain(left)
            if (status == 0) == (operator == "&&"):
                return self.execute_chain(right)
            return status

        command = trim_whitespace(chain)
        if command.startswith("!"):
            return 1 if self.execute_chain(command[1:]) == 0 else 0
        if command.startswith("("):
            if len(command) > 1 and command.endswith(")"):
                return self.run_subshell(command[1:-1])
            self.stderr.write("pish: syntax error: missing ')'\n")
            self.stderr.flush()
            return _SYNTAX_ERROR
        if not command:
            return 0
        return self._simple(command)

    # -- input loop -----------------------------------------------------

    def read_command(self, stream: TextIO) -> tuple[str | None, bool]:
        """Read one command, following continuations.

        Returns the gathered command (None if nothing was read) and whether
        the stream ended while reading.
        """
        full: str | None = None
        continuation = Continuation.NONE
        while True:
            raw = stream.readline()
            if not raw:
                return full, True
            line = trim_whitespace(raw.split("\n", 1)[0])
            full = join_continuation(full, line, continuation)
            continuation, full = check_for_continuation(full)
            if continuation is Continuation.NONE:
                return full, False
            if not self.script_mode:
                self.stdout.write("> ")
                self.stdout.flush()

    def _stdin_is_tty(self) -> bool:
        try:
            return sys.stdin.isatty()
        except (AttributeError, ValueError, OSError):
            return False

    def loop(self, stream: TextIO) -> int:
        """Read and run commands until the stream ends."""
        while True:
            self.prompt()
            command, ended = self.read_command(stream)
            if ended:
                if command is not None:
                    self.last_exit_status = self.execute_chain(command)
                if not self.script_mode and self._stdin_is_tty():
                    self.stdout.write("\n")
                    self.stdout.flush()
                return self.last_exit_status
            if command:
                if not self.script_mode:
                    args = parse_command(command)
                    if args:
                        self.history.add(args)
                self.last_exit_status = self.execute_chain(command)
            else:
                self.last_exit_status = 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the shell on standard input or on a script file."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        if not args:
            Shell().loop(sys.stdin)
        elif len(args) == 1:
            try:
                script = open(args[0], encoding="utf-8")
            except OSError as exc:
                print(f"{args[0]}: {exc.strerror or exc}", file=sys.stderr)
                return 1
            with script:
                Shell(script_mode=True).loop(script)
        else:
            print("pish: Usage error", file=sys.stderr)
            return 1
    except ShellExit as exc:
        sys.stdout.flush()
        return exc.code
    return 0


if __name__ == "__main__":
    sys.exit(main())