from __future__ import annotations

import asyncio
import logging
import shlex
import time
import uuid

from ..languages import LanguageSpec, MissingEntryTypeError, get_language, plan_artifacts
from ..settings import RunnerSettings
from .process import StepOutcome, display_command, login_shell_argv, resolve_shell, run_steps
from .scratch import ScratchDirectory
from .types import CodeExecutionResult, ErrorKind, ExecutionArtifacts, ExecutionRequest

logger = logging.getLogger(__name__)


def not_found_message(executable: str) -> str:
    """Return remediation guidance for a toolchain missing from PATH.

    Example:
        ```python
        text = not_found_message("node")
        ```
    """
    return (
        f"Error: '{executable}' command not found. "
        f"Please ensure '{executable}' is installed and accessible in your system's PATH.\n"
        f"If it is installed, try running 'command -v {executable}' in your terminal to find its path.\n"
        "Then, consider adding its directory to your shell's PATH "
        "(e.g., in ~/.zshrc or ~/.bashrc) and try again."
    )


def _is_not_found(outcome: StepOutcome, executable: str) -> bool:
    """Return whether a failed step means the shell could not find ``executable``.

    Example:
        ```python
        missing = _is_not_found(outcome, "go")
        ```
    """
    if outcome.returncode != 127:
        return False
    stderr = outcome.stderr
    return "not found" in stderr.lower() and executable in stderr


def _failure(
    kind: ErrorKind,
    message: str,
    *,
    started: float,
    stdout: str = "",
    stderr: str = "",
    executed_command: str | None = None,
    exit_code: int | None = None,
) -> CodeExecutionResult:
    """Build a failed result with elapsed time filled in.

    Example:
        ```python
        result = _failure(ErrorKind.TIMEOUT, "timed out", started=time.perf_counter())
        ```
    """
    return CodeExecutionResult(
        stdout=stdout,
        stderr=stderr,
        error=message,
        executed_command=executed_command,
        error_kind=kind,
        exit_code=exit_code,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )


class CodeRunner:
    """Run snippets with local toolchains through the user's login shell.

    Example:
        ```python
        runner = CodeRunner(RunnerSettings(timeout_seconds=5))
        result = runner.execute("python", "print('hi')")
        ```
    """

    def __init__(
        self,
        settings: RunnerSettings | None = None,
        *,
        scratch: ScratchDirectory | None = None,
    ) -> None:
        """Bind settings and the scratch directory handle shared by all runs.

        Example:
            ```python
            runner = CodeRunner(scratch=ScratchDirectory("/tmp/lcr"))
            ```
        """
        self.settings = settings or RunnerSettings()
        self.scratch = scratch or ScratchDirectory(self.settings.scratch_dir)

    def execute(self, language_id: str, source_text: str) -> CodeExecutionResult:
        """Run ``source_text`` as ``language_id`` and return the captured result.

        Never raises: every failure is reported through ``error``. Artifacts
        created for the run are removed before returning.

        Example:
            ```python
            result = runner.execute("javascript", "console.log('hi')")
            ```
        """
        started = time.perf_counter()
        spec = get_language(language_id)
        if spec is None:
            return _failure(
                ErrorKind.UNSUPPORTED_LANGUAGE,
                f"Unsupported language: {language_id}",
                started=started,
            )
        try:
            artifacts = plan_artifacts(spec, source_text, self.scratch.path, uuid.uuid4().hex)
        except MissingEntryTypeError as exc:
            return _failure(ErrorKind.MISSING_ENTRY_TYPE, str(exc), started=started)

        try:
            with self.scratch.lease():
                try:
                    return self._run(spec, artifacts, source_text, started)
                finally:
                    self._cleanup(artifacts)
        except OSError as exc:
            return _failure(
                ErrorKind.FILESYSTEM,
                f"Could not prepare scratch directory {self.scratch.path}: {exc}",
                started=started,
            )

    def execute_request(self, request: ExecutionRequest) -> CodeExecutionResult:
        """Run an :class:`ExecutionRequest`.

        Example:
            ```python
            result = runner.execute_request(ExecutionRequest("python", "print(1)"))
            ```
        """
        return self.execute(request.language_id, request.source_text)

    async def execute_async(self, language_id: str, source_text: str) -> CodeExecutionResult:
        """Run ``execute`` in a worker thread so the event loop stays free.

        Example:
            ```python
            result = await runner.execute_async("python", "print('hi')")
            ```
        """
        return await asyncio.to_thread(self.execute, language_id, source_text)

    def _run(
        self,
        spec: LanguageSpec,
        artifacts: ExecutionArtifacts,
        source_text: str,
        started: float,
    ) -> CodeExecutionResult:
        """Write the source, spawn every step, and classify the outcome.

        Example:
            ```python
            result = runner._run(spec, artifacts, "print(1)", time.perf_counter())
            ```
        """
        try:
            # Another process may have removed the shared directory after our lease created it.
            artifacts.working_directory.mkdir(parents=True, exist_ok=True)
            if artifacts.run_directory is not None:
                artifacts.run_directory.mkdir()
            artifacts.source_path.write_text(source_text, encoding="utf-8", newline="")
        except (OSError, UnicodeError) as exc:
            return _failure(
                ErrorKind.FILESYSTEM,
                f"Failed to write source file {artifacts.source_path}: {exc}",
                started=started,
            )

        shell = resolve_shell(self.settings.shell, self.settings.fallback_shells)
        raw_steps = spec.build_steps(artifacts)
        wrapped = [login_shell_argv(shell, step) for step in raw_steps]
        command = display_command(wrapped)
        logger.debug("Using shell %s; command to execute: %s", shell, command)

        try:
            outcome, index = run_steps(
                wrapped,
                cwd=artifacts.working_directory,
                timeout_seconds=self.settings.timeout_seconds,
            )
        except FileNotFoundError:
            return _failure(
                ErrorKind.EXECUTABLE_NOT_FOUND,
                not_found_message(shell),
                started=started,
                executed_command=command,
            )
        except OSError as exc:
            return _failure(
                ErrorKind.FILESYSTEM,
                f"Could not start {shell}: {exc}",
                started=started,
                executed_command=command,
            )

        if outcome.timed_out:
            return _failure(
                ErrorKind.TIMEOUT,
                f"Execution timed out after {self.settings.timeout_seconds}s",
                started=started,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
                executed_command=command,
                exit_code=outcome.returncode,
            )
        if outcome.returncode != 0:
            failed_step = raw_steps[index]
            if _is_not_found(outcome, failed_step[0]):
                kind = ErrorKind.EXECUTABLE_NOT_FOUND
                message = not_found_message(failed_step[0])
            else:
                kind = ErrorKind.NON_ZERO_EXIT
                message = (
                    f"Command failed with exit code {outcome.returncode}: "
                    f"{shlex.join(failed_step)}"
                )
            return _failure(
                kind,
                message,
                started=started,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
                executed_command=command,
                exit_code=outcome.returncode,
            )

        return CodeExecutionResult(
            stdout=outcome.stdout,
            stderr=outcome.stderr,
            error=None,
            executed_command=command,
            exit_code=0,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    def _cleanup(self, artifacts: ExecutionArtifacts) -> None:
        """Remove the run's artifacts, logging failures instead of raising.

        Example:
            ```python
            runner._cleanup(artifacts)
            ```
        """
        for failure in self.scratch.remove_artifacts(artifacts):
            logger.warning("Error cleaning up %s", failure)
