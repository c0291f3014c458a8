from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

# "$0" is the program and "$@" its arguments, so nothing user-controlled is parsed by the shell.
_EXEC_SCRIPT = 'exec "$0" "$@"'


@dataclass(slots=True)
class StepOutcome:
    """Captured result of one spawned step.

    Example:
        ```python
        outcome = StepOutcome(stdout="hi\\n", stderr="", returncode=0, timed_out=False)
        ```
    """

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool


def resolve_shell(
    override: str | None,
    fallback_shells: Sequence[str],
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the login shell: explicit override, then ``$SHELL``, then fallbacks.

    The first existing fallback is used; when none exists the first entry is
    returned so that spawning fails with a clear error.

    Example:
        ```python
        shell = resolve_shell(None, ["/bin/zsh", "/bin/sh"])
        ```
    """
    if override:
        return override
    env = os.environ if environ is None else environ
    from_env = (env.get("SHELL") or "").strip()
    if from_env:
        return from_env
    for candidate in fallback_shells:
        if Path(candidate).exists():
            return candidate
    if fallback_shells:
        return fallback_shells[0]
    return "/bin/sh"


def login_shell_argv(shell: str, argv: Sequence[str]) -> list[str]:
    """Wrap ``argv`` so it runs through ``<shell> -l -c`` without re-parsing.

    Example:
        ```python
        cmd = login_shell_argv("/bin/bash", ["python3", "/tmp/a.py"])
        ```
    """
    return [shell, "-l", "-c", _EXEC_SCRIPT, *argv]


def display_command(steps: Sequence[Sequence[str]]) -> str:
    """Render wrapped steps as one copy-pasteable command line.

    Example:
        ```python
        text = display_command([["/bin/sh", "-l", "-c", "exec \\"$0\\"", "ls"]])
        ```
    """
    return " && ".join(shlex.join(step) for step in steps)


def _kill_group(process: subprocess.Popen[str]) -> None:
    """Forcefully terminate the process group started for ``process``.

    Example:
        ```python
        _kill_group(process)
        ```
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError as exc:
        logger.debug("killpg failed for pid %s: %s", process.pid, exc)
        process.kill()


def run_step(args: Sequence[str], *, cwd: Path, timeout_seconds: float) -> StepOutcome:
    """Spawn one command with captured output and a wall-clock timeout.

    The child runs in its own session so that a timeout kills compiler
    subprocesses as well. Output captured before the kill is returned.
    ``OSError`` from spawning propagates to the caller.

    Example:
        ```python
        outcome = run_step(["/bin/sh", "-c", "echo hi"], cwd=Path("/tmp"), timeout_seconds=5)
        ```
    """
    process = subprocess.Popen(
        list(args),
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=True,
    )
    try:
        stdout, stderr = process.communicate(timeout=max(0.0, timeout_seconds))
    except subprocess.TimeoutExpired:
        _kill_group(process)
        stdout, stderr = process.communicate()
        return StepOutcome(stdout or "", stderr or "", process.returncode, True)
    return StepOutcome(stdout or "", stderr or "", process.returncode, False)


def run_steps(
    steps: Sequence[Sequence[str]],
    *,
    cwd: Path,
    timeout_seconds: float,
) -> tuple[StepOutcome, int]:
    """Run steps in order under one shared deadline, stopping at the first failure.

    Returns the merged outcome and the index of the last step that ran.

    Example:
        ```python
        outcome, index = run_steps([["go", "build", "a.go"], ["./a"]], cwd=Path("/tmp"), timeout_seconds=5)
        ```
    """
    deadline = time.monotonic() + timeout_seconds
    stdout_parts: list[str] = []
    stderr_parts: list[str] = []
    outcome = StepOutcome("", "", 0, False)
    index = 0
    for index, step in enumerate(steps):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            outcome = StepOutcome("", "", -signal.SIGKILL, True)
            break
        logger.debug("Running step %d: %s", index, shlex.join(step))
        outcome = run_step(step, cwd=cwd, timeout_seconds=remaining)
        stdout_parts.append(outcome.stdout)
        stderr_parts.append(outcome.stderr)
        if outcome.timed_out or outcome.returncode != 0:
            break
    return (
        StepOutcome(
            stdout="".join(stdout_parts),
            stderr="".join(stderr_parts),
            returncode=outcome.returncode,
            timed_out=outcome.timed_out,
        ),
        index,
    )
