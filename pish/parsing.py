"""Text handling for command lines: trimming, splitting and continuations."""

from __future__ import annotations

from enum import IntEnum

_WHITESPACE = " \t\n\v\f\r"
_ARG_SEPARATORS = " \t"


class Continuation(IntEnum):
    """Why a line asks for another line to be read."""

    NONE = 0
    BACKSLASH = 1
    CONDITIONAL = 2
    PIPE = 3


def trim_whitespace(text: str) -> str:
    """Remove leading and trailing whitespace."""
    return text.strip(_WHITESPACE)


def parse_command(text: str) -> list[str]:
    """Split a command into arguments on spaces and tabs."""
    args = [text]
    for separator in _ARG_SEPARATORS:
        args = [piece for arg in args for piece in arg.split(separator)]
    return [arg for arg in args if arg]


def check_for_continuation(line: str) -> tuple[Continuation, str]:
    """Classify how a line continues and return it without a trailing backslash."""
    if not line:
        return Continuation.NONE, line
    if line.endswith("\\"):
        return Continuation.BACKSLASH, line[:-1]
    if line.endswith(("&&", "||")):
        return Continuation.CONDITIONAL, line
    if line.endswith("|"):
        return Continuation.PIPE, line
    return Continuation.NONE, line


def join_continuation(
    full: str | None, line: str, continuation: Continuation
) -> str:
    """Append a continued line to the command gathered so far."""
    if full is None:
        return line
    separator = "" if continuation == Continuation.BACKSLASH else " "
    return f"{full}{separator}{line}"


def split_pipe(chain: str) -> tuple[str, str] | None:
    """Split at the rightmost top-level single pipe, if there is one."""
    level = 0
    pos = len(chain) - 1
    while pos >= 0:
        char = chain[pos]
        if char == ")":
            level += 1
        elif char == "(":
            level -= 1
        elif char == "|" and level == 0:
            if pos > 0 and chain[pos - 1] == "|":
                pos -= 1
            else:
                return chain[:pos], chain[pos + 1 :]
        pos -= 1
    return None


def split_sequence(chain: str) -> tuple[str, str] | None:
    """Split at the first top-level semicolon, if there is one."""
    level = 0
    for pos, char in enumerate(chain):
        if char == "(":
            level += 1
        elif char == ")":
            level = max(level - 1, 0)
        elif char == ";" and level == 0:
            return chain[:pos], chain[pos + 1 :]
    return None


def split_conditional(chain: str) -> tuple[str, str, str] | None:
    """Split at the first top-level ``&&`` or ``||`` into (left, operator, right)."""
    level = 0
    for pos, char in enumerate(chain):
        if char == "(":
            level += 1
        elif char == ")":
            level = max(level - 1, 0)
        elif level == 0:
            operator = chain[pos : pos + 2]
            if operator in ("&&", "||"):
                return chain[:pos], operator, chain[pos + 2 :]
    return None