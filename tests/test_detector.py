import shutil
from pathlib import Path

import pytest

from local_code_runner import RunnerSettings, ToolchainDetectionError, ToolchainDetector, detect_languages
from local_code_runner import detector as detector_module
from local_code_runner.languages import LANGUAGES, LanguageSpec


def _fake_spec(command: str) -> LanguageSpec:
    return LanguageSpec(command, command.title(), command, ".txt", lambda artifacts: [[command]])


def test_detect_skips_missing_toolchains(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        detector_module,
        "LANGUAGES",
        (_fake_spec("lcr-definitely-missing-tool"), _fake_spec("sh")),
    )
    detected = ToolchainDetector().detect()

    assert [lang.id for lang in detected] == ["sh"]
    assert detected[0].executable_path.endswith("sh")


def test_detect_returns_empty_list_when_nothing_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(detector_module, "LANGUAGES", (_fake_spec("lcr-definitely-missing-tool"),))
    assert ToolchainDetector().detect() == []


def test_detect_never_reports_unresolvable_commands() -> None:
    detected = ToolchainDetector().detect()
    registered = {spec.id: spec for spec in LANGUAGES}
    for lang in detected:
        assert lang.id in registered
        assert lang.executable_path


@pytest.mark.skipif(shutil.which("python3") is None, reason="python3 not installed")
def test_detect_finds_python() -> None:
    python = ToolchainDetector().detect_one("python")
    assert python is not None
    assert python.display_name == "Python"
    assert "python3" in python.executable_path


def test_detect_one_unknown_language() -> None:
    assert ToolchainDetector().detect_one("not-a-real-language") is None


def test_detect_command_name_is_not_shell_parsed(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    marker = tmp_path / "pwned"
    monkeypatch.setattr(detector_module, "LANGUAGES", (_fake_spec(f"sh; touch {marker}"),))
    assert ToolchainDetector().detect() == []
    assert not marker.exists()


def test_missing_shell_raises(tmp_path: Path) -> None:
    detector = ToolchainDetector(RunnerSettings(shell=str(tmp_path / "no-such-shell")))
    with pytest.raises(ToolchainDetectionError, match="no-such-shell"):
        detector.detect()


def test_non_executable_shell_raises(tmp_path: Path) -> None:
    shell = tmp_path / "not-executable-shell"
    shell.write_text("#!/bin/sh\n", encoding="utf-8")
    shell.chmod(0o644)
    detector = ToolchainDetector(RunnerSettings(shell=str(shell)))
    with pytest.raises(ToolchainDetectionError, match="not-executable-shell") as exc:
        detector.detect()
    assert isinstance(exc.value.__cause__, OSError)


def test_detect_languages_helper_is_repeatable() -> None:
    first = detect_languages()
    second = detect_languages()
    assert [lang.id for lang in first] == [lang.id for lang in second]
