import time
from pathlib import Path

from local_code_runner.execution.process import (
    display_command,
    login_shell_argv,
    resolve_shell,
    run_step,
    run_steps,
)


def test_resolve_shell_prefers_override() -> None:
    assert resolve_shell("/bin/custom", ["/bin/sh"], environ={"SHELL": "/bin/zsh"}) == "/bin/custom"


def test_resolve_shell_uses_environment() -> None:
    assert resolve_shell(None, ["/bin/sh"], environ={"SHELL": "/usr/bin/fish"}) == "/usr/bin/fish"


def test_resolve_shell_falls_back_to_first_existing(tmp_path: Path) -> None:
    existing = tmp_path / "sh"
    existing.write_text("", encoding="utf-8")
    missing = str(tmp_path / "zsh")
    assert resolve_shell(None, [missing, str(existing)], environ={}) == str(existing)


def test_resolve_shell_without_candidates_returns_first_fallback(tmp_path: Path) -> None:
    missing = str(tmp_path / "zsh")
    assert resolve_shell(None, [missing], environ={"SHELL": ""}) == missing


def test_login_shell_argv_keeps_arguments_out_of_the_script() -> None:
    argv = login_shell_argv("/bin/sh", ["python3", "/tmp/it's $(rm -rf).py"])
    assert argv[:3] == ["/bin/sh", "-l", "-c"]
    assert argv[4:] == ["python3", "/tmp/it's $(rm -rf).py"]


def test_display_command_joins_steps() -> None:
    text = display_command([["go", "build", "a b.go"], ["./a"]])
    assert text == "go build 'a b.go' && ./a"


def test_login_shell_passes_metacharacters_verbatim(tmp_path: Path) -> None:
    argv = login_shell_argv("/bin/sh", ["printf", "%s", "$HOME; echo pwned"])
    outcome = run_step(argv, cwd=tmp_path, timeout_seconds=5)
    assert outcome.returncode == 0
    assert outcome.stdout == "$HOME; echo pwned"


def test_run_step_times_out_and_keeps_partial_output(tmp_path: Path) -> None:
    started = time.monotonic()
    outcome = run_step(
        ["/bin/sh", "-c", "echo started; sleep 10"],
        cwd=tmp_path,
        timeout_seconds=0.5,
    )
    assert outcome.timed_out is True
    assert "started" in outcome.stdout
    assert time.monotonic() - started < 5


def test_run_steps_stops_at_first_failure(tmp_path: Path) -> None:
    outcome, index = run_steps(
        [["/bin/sh", "-c", "echo compile >&2; exit 2"], ["/bin/sh", "-c", "echo ran"]],
        cwd=tmp_path,
        timeout_seconds=5,
    )
    assert index == 0
    assert outcome.returncode == 2
    assert outcome.stderr == "compile\n"
    assert "ran" not in outcome.stdout


def test_run_steps_concatenates_output(tmp_path: Path) -> None:
    outcome, index = run_steps(
        [["/bin/sh", "-c", "echo one"], ["/bin/sh", "-c", "echo two"]],
        cwd=tmp_path,
        timeout_seconds=5,
    )
    assert index == 1
    assert outcome.returncode == 0
    assert outcome.stdout == "one\ntwo\n"
