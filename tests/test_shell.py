import io
import os

import pytest

from pish.history import History
from pish.shell import Shell, ShellExit, main


@pytest.fixture
def history(tmp_path):
    return History(tmp_path / "history.txt")


@pytest.fixture
def shell(history):
    return Shell(history=history, script_mode=True, stdout=io.StringIO(), stderr=io.StringIO())


def test_empty_chain_succeeds(shell):
    assert shell.execute_chain("   ") == 0


def test_true_and_false(shell):
    assert shell.execute_chain("true") == 0
    assert shell.execute_chain("false") == 1
    assert shell.last_exit_status == 1


def test_bang_negates(shell):
    assert shell.execute_chain("! true") == 1
    assert shell.execute_chain("!false") == 0


@pytest.mark.parametrize(
    "chain, expected",
    [
        ("false && true", 1),
        ("true && false", 1),
        ("false || true", 0),
        ("true || false", 0),
        ("false; true", 0),
        ("true; false", 1),
    ],
)
def test_operators(shell, chain, expected):
    assert shell.execute_chain(chain) == expected


def test_conditional_output_order(shell, capfd):
    assert shell.execute_chain("echo a && echo b || echo c") == 0
    assert capfd.readouterr().out == "a\nb\n"


def test_missing_program_reports_127(shell):
    assert shell.execute_chain("no-such-program-here arg") == 127
    assert shell.stderr.getvalue().startswith("no-such-program-here: ")


def test_pipe_passes_output(shell, capfd):
    assert shell.execute_chain("echo hello | tr a-z A-Z") == 0
    assert capfd.readouterr().out == "HELLO\n"


def test_pipe_status_is_right_side(shell):
    assert shell.execute_chain("true | false") == 1
    assert shell.execute_chain("false | true") == 0


def test_or_is_not_a_pipe(shell, capfd):
    assert shell.execute_chain("false || echo fallback") == 0
    assert capfd.readouterr().out == "fallback\n"


def test_cd_changes_directory(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "sub"
    target.mkdir()
    assert shell.execute_chain(f"cd {target}") == 0
    assert os.getcwd() == str(target)


def test_cd_dash_returns_to_previous(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "other"
    target.mkdir()
    shell.execute_chain(f"cd {target}")
    assert shell.execute_chain("cd -") == 0
    assert os.getcwd() == str(tmp_path)
    assert shell.stdout.getvalue() == f"{tmp_path}\n"


def test_cd_dash_without_previous_prints_cwd(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert shell.execute_chain("cd -") == 0
    assert shell.stdout.getvalue() == f"{tmp_path}\n"


def test_cd_usage_error(shell):
    assert shell.execute_chain("cd") == 1
    assert shell.stderr.getvalue() == "pish: Usage error\n"


def test_cd_missing_directory(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert shell.execute_chain(f"cd {tmp_path / 'missing'}") == 1
    assert shell.stderr.getvalue().startswith("cd: ")
    assert os.getcwd() == str(tmp_path)


def test_subshell_isolates_directory(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert shell.execute_chain("(cd /)") == 0
    assert os.getcwd() == str(tmp_path)


def test_subshell_exit_status(shell):
    assert shell.execute_chain("(exit 3)") == 3
    assert shell.execute_chain("(false) || (true)") == 0


def test_subshell_syntax_error(shell):
    assert shell.execute_chain("(true") == 2
    assert shell.stderr.getvalue() == "pish: syntax error: missing ')'\n"


def test_exit_with_code(shell):
    with pytest.raises(ShellExit) as info:
        shell.execute_chain("exit 5")
    assert info.value.code == 5


def test_exit_uses_last_status(shell):
    shell.execute_chain("false")
    with pytest.raises(ShellExit) as info:
        shell.execute_chain("exit")
    assert info.value.code == shell.last_exit_status


def test_exit_non_numeric(shell):
    assert shell.execute_chain("exit abc") == 2
    assert shell.stderr.getvalue() == "pish: exit: numeric argument required\n"


def test_exit_too_many_args(shell):
    assert shell.execute_chain("exit 1 2") == 1
    assert shell.stderr.getvalue() == "pish: Usage error\n"


def test_exec_usage_and_failure(shell):
    assert shell.execute_chain("exec") == 1
    with pytest.raises(ShellExit) as info:
        shell.execute_chain("exec no-such-program-here")
    assert info.value.code == 127


def test_exec_in_subshell(shell):
    assert shell.execute_chain("(exec true)") == 0
    assert shell.execute_chain("(exec false)") == 1


def test_history_builtin(shell, history):
    history.add(["echo", "Hello", "1"])
    history.add(["pwd"])
    assert shell.execute_chain("history") == 0
    assert shell.stdout.getvalue() == "1 echo Hello 1\n2 pwd\n"
    assert shell.execute_chain("history -c") == 0
    assert history.entries() == []
    assert shell.execute_chain("history x") == 1


def test_read_command_backslash(shell):
    assert shell.read_command(io.StringIO("echo a \\\nb\n")) == ("echo a b", False)


def test_read_command_conditional(shell):
    assert shell.read_command(io.StringIO("true &&\n  false\n")) == ("true && false", False)


def test_read_command_eof(shell):
    assert shell.read_command(io.StringIO("")) == (None, True)
    assert shell.read_command(io.StringIO("true &&")) == ("true &&", True)


def test_loop_returns_last_status(shell):
    assert shell.loop(io.StringIO("true\nfalse\n")) == 1
    assert shell.loop(io.StringIO("false\n\n")) == 0


def test_loop_runs_partial_command_at_eof(shell):
    assert shell.loop(io.StringIO("false ||")) == 0


def test_interactive_loop_records_history(history):
    out = io.StringIO()
    interactive = Shell(history=history, script_mode=False, stdout=out, stderr=io.StringIO())
    assert interactive.loop(io.StringIO("true   a\tb\n\nfalse\n")) == 1
    assert history.entries() == ["true a b", "false"]
    assert "@pish " in out.getvalue()


def test_script_loop_skips_history(shell, history):
    shell.loop(io.StringIO("true\n"))
    assert history.entries() == []


def test_main_script_exit_code(tmp_path):
    script = tmp_path / "script.sh"
    script.write_text("true\nexit 7\n")
    assert main([str(script)]) == 7


def test_main_script_success(tmp_path):
    script = tmp_path / "script.sh"
    script.write_text("false\n")
    assert main([str(script)]) == 0


def test_main_missing_script(tmp_path, capsys):
    assert main([str(tmp_path / "missing.sh")]) == 1
    assert str(tmp_path / "missing.sh") in capsys.readouterr().err


def test_main_usage_error(capsys):
    assert main(["a", "b"]) == 1
    assert capsys.readouterr().err == "pish: Usage error\n"