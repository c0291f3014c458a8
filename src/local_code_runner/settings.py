from __future__ import annotations

import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the runner table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/lcr.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_seconds": 5,
            "fallback_shells": ["/bin/zsh", "/bin/bash", "/bin/sh"],
            "detect_timeout_seconds": 10,
            "sweep_max_age_seconds": 3600,
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    table = raw.get("runner", raw)
    if not isinstance(table, dict):
        raise ValueError("Runner settings must be a TOML table")
    return table


def _list_of_str(value: Any, field_name: str) -> list[str]:
    """Validate and normalize a list-of-strings settings field.

    Example:
        ```python
        shells = _list_of_str(["/bin/bash"], "fallback_shells")
        ```
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings")
        out.append(item)
    return out


def _optional_str(value: Any, field_name: str) -> str | None:
    """Validate an optional string settings field, treating blanks as unset.

    Example:
        ```python
        shell = _optional_str("/bin/bash", "shell")
        ```
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    return value.strip() or None


def default_scratch_dir() -> str:
    """Return the default scratch directory under the system temp dir.

    Example:
        ```python
        scratch = default_scratch_dir()
        ```
    """
    return str(Path(tempfile.gettempdir()) / "local-code-runner")


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_TIMEOUT_SECONDS = int(_DEFAULT_SETTINGS_RAW.get("timeout_seconds", 5))
DEFAULT_DETECT_TIMEOUT_SECONDS = int(_DEFAULT_SETTINGS_RAW.get("detect_timeout_seconds", 10))
DEFAULT_SWEEP_MAX_AGE_SECONDS = int(_DEFAULT_SETTINGS_RAW.get("sweep_max_age_seconds", 3600))
DEFAULT_FALLBACK_SHELLS = _list_of_str(
    _DEFAULT_SETTINGS_RAW.get("fallback_shells", []), "fallback_shells"
)


@dataclass(slots=True)
class RunnerSettings:
    """Tunable bounds and locations for detection and execution.

    Example:
        ```python
        settings = RunnerSettings(timeout_seconds=2, scratch_dir="/tmp/lcr")
        ```
    """

    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    scratch_dir: str = field(default_factory=default_scratch_dir)
    shell: str | None = None
    fallback_shells: list[str] = field(default_factory=lambda: DEFAULT_FALLBACK_SHELLS.copy())
    detect_timeout_seconds: int = DEFAULT_DETECT_TIMEOUT_SECONDS
    sweep_max_age_seconds: int = DEFAULT_SWEEP_MAX_AGE_SECONDS
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate numeric bounds after dataclass initialization.

        Example:
            ```python
            RunnerSettings(timeout_seconds=5)
            ```
        """
        if int(self.timeout_seconds) < 1:
            raise ValueError("timeout_seconds must be at least 1")
        if int(self.detect_timeout_seconds) < 1:
            raise ValueError("detect_timeout_seconds must be at least 1")
        if int(self.sweep_max_age_seconds) < 0:
            raise ValueError("sweep_max_age_seconds must not be negative")
        if not str(self.scratch_dir).strip():
            raise ValueError("scratch_dir must be a non-empty path")

    @classmethod
    def from_file(cls, config_path: str) -> "RunnerSettings":
        """Create settings from a TOML file with an optional ``[runner]`` table.

        Example:
            ```python
            settings = RunnerSettings.from_file("/tmp/lcr.toml")
            ```
        """
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ValueError(f"Settings file not found: {config_path}")
        raw = _read_settings_toml(path)
        scratch_dir = _optional_str(raw.get("scratch_dir"), "scratch_dir")
        return cls(
            timeout_seconds=int(raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            scratch_dir=str(Path(scratch_dir).expanduser()) if scratch_dir else default_scratch_dir(),
            shell=_optional_str(raw.get("shell"), "shell"),
            fallback_shells=_list_of_str(
                raw.get("fallback_shells", DEFAULT_FALLBACK_SHELLS), "fallback_shells"
            ),
            detect_timeout_seconds=int(
                raw.get("detect_timeout_seconds", DEFAULT_DETECT_TIMEOUT_SECONDS)
            ),
            sweep_max_age_seconds=int(
                raw.get("sweep_max_age_seconds", DEFAULT_SWEEP_MAX_AGE_SECONDS)
            ),
            config_path=config_path,
        )
