from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Classification attached to a failed execution.

    Example:
        ```python
        kind = ErrorKind.TIMEOUT
        ```
    """

    UNSUPPORTED_LANGUAGE = "unsupported_language"
    MISSING_ENTRY_TYPE = "missing_entry_type"
    EXECUTABLE_NOT_FOUND = "executable_not_found"
    NON_ZERO_EXIT = "non_zero_exit"
    TIMEOUT = "timeout"
    FILESYSTEM = "filesystem"


@dataclass(frozen=True, slots=True)
class DetectedLanguage:
    """A registered language whose toolchain resolved in the login shell.

    Example:
        ```python
        lang = DetectedLanguage("python", "Python", "/usr/bin/python3")
        ```
    """

    id: str
    display_name: str
    executable_path: str


@dataclass(slots=True)
class ExecutionRequest:
    """Caller-supplied snippet to run.

    Example:
        ```python
        req = ExecutionRequest(language_id="python", source_text="print('hi')")
        ```
    """

    language_id: str
    source_text: str


@dataclass(frozen=True, slots=True)
class ExecutionArtifacts:
    """Paths created for one execution call.

    ``run_directory`` is only set for languages whose source file must be named
    after its entry type; it holds the source and every compiled class.

    Example:
        ```python
        artifacts = ExecutionArtifacts(Path("/tmp/lcr/abc.py"), None, Path("/tmp/lcr"))
        ```
    """

    source_path: Path
    compiled_path: Path | None
    working_directory: Path
    run_directory: Path | None = None
    entry_type: str | None = None

    def paths(self) -> list[Path]:
        """Return every tracked path that must be removed after the run.

        Example:
            ```python
            for path in artifacts.paths():
                print(path)
            ```
        """
        tracked = [self.source_path]
        if self.compiled_path is not None:
            tracked.append(self.compiled_path)
        if self.run_directory is not None:
            tracked.append(self.run_directory)
        return tracked


@dataclass(frozen=True, slots=True)
class CodeExecutionResult:
    """Terminal record returned by the execution engine.

    ``error`` is ``None`` exactly when every step exited with status zero.
    Captured output is kept on failures and timeouts.

    Example:
        ```python
        result = CodeExecutionResult(stdout="hi\\n", stderr="", error=None, executed_command="python3 a.py")
        ```
    """

    stdout: str
    stderr: str
    error: str | None
    executed_command: str | None
    error_kind: ErrorKind | None = None
    exit_code: int | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Return whether the snippet ran to a zero exit status.

        Example:
            ```python
            if result.ok:
                print(result.stdout)
            ```
        """
        return self.error is None

    @property
    def timed_out(self) -> bool:
        """Return whether the run was killed by the wall-clock timeout.

        Example:
            ```python
            assert not result.timed_out
            ```
        """
        return self.error_kind is ErrorKind.TIMEOUT
