from __future__ import annotations

from .detector import ToolchainDetector
from .execution.engine import CodeRunner
from .execution.types import CodeExecutionResult, DetectedLanguage
from .settings import RunnerSettings


def _resolve_settings(settings: RunnerSettings | None, config_file: str | None) -> RunnerSettings:
    """Resolve the effective settings object for a call.

    Example:
        ```python
        settings = _resolve_settings(None, "/tmp/lcr.toml")
        ```
    """
    if settings is not None and config_file is not None:
        raise ValueError("Provide either 'settings' or 'config_file', not both")
    if config_file is not None:
        return RunnerSettings.from_file(config_file)
    if settings is None:
        return RunnerSettings()
    if settings.config_path is not None:
        return RunnerSettings.from_file(settings.config_path)
    return settings


def run_code(
    language_id: str,
    source_text: str,
    runner: CodeRunner | None = None,
    settings: RunnerSettings | None = None,
    config_file: str | None = None,
) -> CodeExecutionResult:
    """Execute a snippet with the given runner, or a runner built from settings.

    Example:
        ```python
        from local_code_runner import run_code
        result = run_code("python", "print(2 + 2)")
        ```
    """
    if runner is None:
        runner = CodeRunner(_resolve_settings(settings, config_file))
    elif settings is not None or config_file is not None:
        raise ValueError("Provide either 'runner' or settings, not both")
    return runner.execute(language_id, source_text)


def detect_languages(
    settings: RunnerSettings | None = None,
    config_file: str | None = None,
) -> list[DetectedLanguage]:
    """Return the languages whose toolchains resolve in the login shell.

    Example:
        ```python
        from local_code_runner import detect_languages
        names = [lang.display_name for lang in detect_languages()]
        ```
    """
    return ToolchainDetector(_resolve_settings(settings, config_file)).detect()
