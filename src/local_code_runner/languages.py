from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .execution.types import ExecutionArtifacts

StepBuilder = Callable[[ExecutionArtifacts], list[list[str]]]

# First public top-level type wins when several are declared.
_JAVA_ENTRY_TYPE = re.compile(
    r"\bpublic\s+(?:(?:abstract|final|sealed|non-sealed|static|strictfp)\s+)*"
    r"(?:class|interface|enum|record)\s+([A-Za-z_$][A-Za-z0-9_$]*)"
)


class MissingEntryTypeError(ValueError):
    """Raised when a class-named language snippet declares no public type.

    Example:
        ```python
        raise MissingEntryTypeError("java")
        ```
    """

    def __init__(self, language_id: str) -> None:
        """Build the error message for ``language_id``.

        Example:
            ```python
            err = MissingEntryTypeError("java")
            ```
        """
        self.language_id = language_id
        super().__init__(
            f"No public class found in {language_id} source. "
            "Declare a public entry type, e.g. 'public class Main { ... }'."
        )


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    """Registry entry describing how to detect and run one language.

    Example:
        ```python
        spec = LanguageSpec("python", "Python", "python3", ".py", _interpreted("python3"))
        ```
    """

    id: str
    display_name: str
    detect_command: str
    file_extension: str
    build_steps: StepBuilder
    compiled: bool = False
    entry_type_pattern: re.Pattern[str] | None = None


def _interpreted(command: str) -> StepBuilder:
    """Return a step builder that runs the source with one interpreter call.

    Example:
        ```python
        steps = _interpreted("node")(artifacts)
        ```
    """

    def build(artifacts: ExecutionArtifacts) -> list[list[str]]:
        """Build ``<command> <source>``.

        Example:
            ```python
            build(artifacts)
            ```
        """
        return [[command, str(artifacts.source_path)]]

    return build


def _go_steps(artifacts: ExecutionArtifacts) -> list[list[str]]:
    """Build ``go build`` followed by the produced binary.

    Example:
        ```python
        steps = _go_steps(artifacts)
        ```
    """
    binary = str(artifacts.compiled_path)
    return [["go", "build", "-o", binary, str(artifacts.source_path)], [binary]]


def _c_steps(artifacts: ExecutionArtifacts) -> list[list[str]]:
    """Build a ``cc`` compile followed by the produced binary.

    Example:
        ```python
        steps = _c_steps(artifacts)
        ```
    """
    binary = str(artifacts.compiled_path)
    return [["cc", "-o", binary, str(artifacts.source_path)], [binary]]


def _java_steps(artifacts: ExecutionArtifacts) -> list[list[str]]:
    """Build ``javac`` into the run directory followed by ``java -cp``.

    Example:
        ```python
        steps = _java_steps(artifacts)
        ```
    """
    class_dir = str(artifacts.run_directory)
    return [
        ["javac", "-d", class_dir, str(artifacts.source_path)],
        ["java", "-cp", class_dir, str(artifacts.entry_type)],
    ]


LANGUAGES: tuple[LanguageSpec, ...] = (
    LanguageSpec("javascript", "JavaScript", "node", ".js", _interpreted("node")),
    LanguageSpec("python", "Python", "python3", ".py", _interpreted("python3")),
    LanguageSpec("ruby", "Ruby", "ruby", ".rb", _interpreted("ruby")),
    LanguageSpec("go", "Go", "go", ".go", _go_steps, compiled=True),
    LanguageSpec("c", "C", "cc", ".c", _c_steps, compiled=True),
    LanguageSpec(
        "java",
        "Java",
        "javac",
        ".java",
        _java_steps,
        compiled=True,
        entry_type_pattern=_JAVA_ENTRY_TYPE,
    ),
)

_BY_ID: dict[str, LanguageSpec] = {spec.id: spec for spec in LANGUAGES}


def get_language(language_id: str) -> LanguageSpec | None:
    """Return the registry entry for ``language_id`` (case-insensitive).

    Example:
        ```python
        spec = get_language("Python")
        ```
    """
    return _BY_ID.get(language_id.strip().lower())


def language_ids() -> list[str]:
    """Return every registered language id in registry order.

    Example:
        ```python
        ids = language_ids()
        ```
    """
    return [spec.id for spec in LANGUAGES]


def find_entry_type(spec: LanguageSpec, source_text: str) -> str:
    """Return the first declared public type name in ``source_text``.

    This is a best-effort pattern match, not a parse: comments and string
    literals are not skipped.

    Example:
        ```python
        name = find_entry_type(get_language("java"), "public class Main {}")
        ```
    """
    if spec.entry_type_pattern is None:
        raise ValueError(f"{spec.id} does not name files after an entry type")
    match = spec.entry_type_pattern.search(source_text)
    if match is None:
        raise MissingEntryTypeError(spec.id)
    return match.group(1)


def plan_artifacts(
    spec: LanguageSpec,
    source_text: str,
    scratch_dir: Path,
    unique_id: str,
) -> ExecutionArtifacts:
    """Derive the artifact paths for one run without touching the filesystem.

    Example:
        ```python
        artifacts = plan_artifacts(get_language("go"), src, Path("/tmp/lcr"), uuid.uuid4().hex)
        ```
    """
    if spec.entry_type_pattern is not None:
        entry_type = find_entry_type(spec, source_text)
        run_directory = scratch_dir / unique_id
        return ExecutionArtifacts(
            source_path=run_directory / f"{entry_type}{spec.file_extension}",
            compiled_path=None,
            working_directory=scratch_dir,
            run_directory=run_directory,
            entry_type=entry_type,
        )
    return ExecutionArtifacts(
        source_path=scratch_dir / f"{unique_id}{spec.file_extension}",
        compiled_path=scratch_dir / unique_id if spec.compiled else None,
        working_directory=scratch_dir,
    )
