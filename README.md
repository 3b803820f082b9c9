# pish

`pish` is a small shell for POSIX systems. It runs commands interactively
or from a script file. It supports:

- plain commands, looked up on `PATH`
- pipes: `ls -l | wc -l`
- sequences: `cd /tmp; ls`
- conditional chains: `make && ./app || echo failed`
- negation: `! grep -q needle file`
- subshells, run in a forked child process: `(cd /tmp && ls) ; pwd`
- line continuation: a line ending in `\`, `&&`, `||` or `|` continues on
  the next line. A trailing `\` joins the next line directly; the other
  endings join it with a single space.

In interactive mode the shell prints a coloured `user@pish cwd$ ` prompt,
and `> ` while waiting for a continued line.

## Built-in commands

| Command        | Effect                                                              |
|----------------|---------------------------------------------------------------------|
| `cd DIR`       | change directory                                                    |
| `cd -`         | go back to the previous directory and print it (prints the current directory if there is none) |
| `exit [N]`     | leave the shell with status `N` (mod 256), or the last status       |
| `exec CMD ...` | replace the shell with `CMD`                                        |
| `history`      | list past commands, numbered from 1                                 |
| `history -c`   | clear the history                                                   |

Wrong argument counts print `pish: Usage error` and give status 1. A
non-numeric argument to `exit` prints `pish: exit: numeric argument
required` and gives status 2. A command that cannot be started gives
status 127; a command killed by a signal gives 128 plus the signal number.

Commands typed interactively are appended to `~/.pish_history`, their
arguments joined by single spaces. Commands read from a script are not
recorded.

## Usage

Install the package, then start an interactive session:

```
pish
```

Run a script:

```
pish script.sh
```

More than one argument is a usage error.

## Library use

```python
from pish.history import History, default_history_path
from pish.shell import Shell

shell = Shell(History(default_history_path()), script_mode=True)
status = shell.execute_chain("echo hello | tr a-z A-Z && echo done")
```

`Shell.loop(stream)` reads and runs commands from any text stream until it
ends and returns the last exit status. The `exit` and `exec` built-ins
raise `pish.shell.ShellExit`, whose `code` attribute holds the status.

`pish.history.History` reads and writes a history file: `add(args)`,
`entries()`, `print(out)` and `clear()`.

The helpers in `pish.parsing` (`trim_whitespace`, `parse_command`,
`split_pipe`, `split_sequence`, `split_conditional`,
`check_for_continuation`, `join_continuation`) take command lines apart
without running them.

## What it does not do

Arguments are split on spaces and tabs only. There is no quoting or
escaping inside a line, no input or output redirection (`<`, `>`), no
variables or variable expansion, no globbing, no background jobs (`&`)
and no job control. Subshells and pipes use `fork`, so the shell needs a
POSIX system.

## Running the tests

```
pip install -e .[test]
pytest
```