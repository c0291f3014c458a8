import shutil
from pathlib import Path

import pytest

from local_code_runner import CodeRunner, ErrorKind, RunnerSettings, run_code


def test_run_code_unsupported_language_without_runner(tmp_path: Path) -> None:
    result = run_code("cobol", "DISPLAY 'HI'.", settings=RunnerSettings(scratch_dir=str(tmp_path / "s")))
    assert result.error_kind is ErrorKind.UNSUPPORTED_LANGUAGE
    assert not (tmp_path / "s").exists()


def test_run_code_rejects_runner_with_settings(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="runner"):
        run_code("python", "print(1)", runner=CodeRunner(), settings=RunnerSettings())


@pytest.mark.skipif(shutil.which("python3") is None, reason="python3 not installed")
def test_run_code_with_config_file(tmp_path: Path) -> None:
    scratch = tmp_path / "scratch"
    config = tmp_path / "lcr.toml"
    config.write_text(f'[runner]\ntimeout_seconds = 10\nscratch_dir = "{scratch}"\n', encoding="utf-8")

    result = run_code("python", "print(2 + 2)", config_file=str(config))

    assert result.ok
    assert result.stdout == "4\n"
    assert not scratch.exists()


@pytest.mark.skipif(shutil.which("python3") is None, reason="python3 not installed")
def test_run_code_with_explicit_runner(tmp_path: Path) -> None:
    runner = CodeRunner(RunnerSettings(scratch_dir=str(tmp_path / "scratch")))
    result = run_code("python", "print('explicit')", runner=runner)
    assert result.stdout == "explicit\n"
