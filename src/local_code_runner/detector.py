from __future__ import annotations

import logging
import subprocess

from .execution.types import DetectedLanguage
from .execution.process import resolve_shell
from .languages import LANGUAGES, LanguageSpec, get_language
from .settings import RunnerSettings

logger = logging.getLogger(__name__)

# The probed name arrives as "$1"; "$0" only labels shell error messages.
_PROBE_SCRIPT = 'command -v "$1"'


class ToolchainDetectionError(RuntimeError):
    """Raised when no probe can run at all, e.g. the login shell is missing.

    Example:
        ```python
        raise ToolchainDetectionError("shell /bin/zsh not found")
        ```
    """


class ToolchainDetector:
    """Probe the login shell for each registered language's toolchain.

    Results are not cached; call ``detect`` again after installing a toolchain.

    Example:
        ```python
        detector = ToolchainDetector()
        languages = detector.detect()
        ```
    """

    def __init__(self, settings: RunnerSettings | None = None) -> None:
        """Bind the settings that choose the shell and the probe timeout.

        Example:
            ```python
            detector = ToolchainDetector(RunnerSettings(shell="/bin/bash"))
            ```
        """
        self.settings = settings or RunnerSettings()

    def detect(self) -> list[DetectedLanguage]:
        """Return every registered language whose probe command resolves.

        Missing toolchains are left out silently; an empty list is a valid
        answer.

        Example:
            ```python
            ids = [lang.id for lang in detector.detect()]
            ```
        """
        shell = self._shell()
        detected: list[DetectedLanguage] = []
        for spec in LANGUAGES:
            found = self._probe(shell, spec)
            if found is not None:
                detected.append(found)
        logger.debug("Detected languages: %s", [lang.id for lang in detected])
        return detected

    def detect_one(self, language_id: str) -> DetectedLanguage | None:
        """Probe a single language by id; unknown ids resolve to ``None``.

        Example:
            ```python
            python = detector.detect_one("python")
            ```
        """
        spec = get_language(language_id)
        if spec is None:
            return None
        return self._probe(self._shell(), spec)

    def _shell(self) -> str:
        """Return the login shell to probe with.

        Example:
            ```python
            shell = detector._shell()
            ```
        """
        return resolve_shell(self.settings.shell, self.settings.fallback_shells)

    def _probe(self, shell: str, spec: LanguageSpec) -> DetectedLanguage | None:
        """Resolve ``spec.detect_command`` in the login shell.

        Example:
            ```python
            found = detector._probe("/bin/bash", get_language("python"))
            ```
        """
        cmd = [shell, "-l", "-c", _PROBE_SCRIPT, "lcr-probe", spec.detect_command]
        try:
            completed = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.settings.detect_timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Probe for %s timed out", spec.detect_command)
            return None
        except OSError as exc:
            raise ToolchainDetectionError(
                f"Login shell {shell} could not be started: {exc}"
            ) from exc

        lines = [line.strip() for line in completed.stdout.splitlines() if line.strip()]
        if completed.returncode != 0 or not lines:
            logger.debug("%s not found: %s", spec.detect_command, completed.stderr.strip())
            return None
        return DetectedLanguage(
            id=spec.id,
            display_name=spec.display_name,
            executable_path=lines[-1],
        )
