import os
import time
from pathlib import Path

from local_code_runner.execution import ExecutionArtifacts, ScratchDirectory


def _age(path: Path, seconds: float) -> None:
    past = time.time() - seconds
    os.utime(path, (past, past))


def test_lease_creates_and_removes_empty_directory(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "nested" / "scratch")
    with scratch.lease() as path:
        assert path.is_dir()
        assert scratch.active_leases == 1
    assert scratch.active_leases == 0
    assert not scratch.path.exists()


def test_lease_keeps_directory_while_sibling_holds_it(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "scratch")
    with scratch.lease():
        with scratch.lease():
            assert scratch.active_leases == 2
        assert scratch.path.is_dir()
    assert not scratch.path.exists()


def test_release_keeps_non_empty_directory(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "scratch")
    with scratch.lease() as path:
        (path / "foreign.txt").write_text("x", encoding="utf-8")
    assert (scratch.path / "foreign.txt").exists()


def test_remove_artifacts_deletes_files_and_run_directory(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path)
    run_dir = tmp_path / "abc"
    run_dir.mkdir()
    (run_dir / "Main.java").write_text("", encoding="utf-8")
    (run_dir / "Main.class").write_text("", encoding="utf-8")
    binary = tmp_path / "bin"
    binary.write_text("", encoding="utf-8")
    artifacts = ExecutionArtifacts(
        source_path=run_dir / "Main.java",
        compiled_path=binary,
        working_directory=tmp_path,
        run_directory=run_dir,
        entry_type="Main",
    )

    assert scratch.remove_artifacts(artifacts) == []
    assert not run_dir.exists()
    assert not binary.exists()


def test_remove_artifacts_ignores_missing_paths(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path)
    artifacts = ExecutionArtifacts(tmp_path / "gone.py", tmp_path / "gone", tmp_path)
    assert scratch.remove_artifacts(artifacts) == []


def test_sweep_removes_only_stale_entries(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "scratch")
    scratch.path.mkdir()
    stale = scratch.path / "old.py"
    stale.write_text("", encoding="utf-8")
    _age(stale, 7200)
    stale_dir = scratch.path / "olddir"
    stale_dir.mkdir()
    (stale_dir / "Main.class").write_text("", encoding="utf-8")
    _age(stale_dir, 7200)
    fresh = scratch.path / "new.py"
    fresh.write_text("", encoding="utf-8")

    summary = scratch.sweep(max_age_seconds=3600)

    assert summary.removed_files == 1
    assert summary.removed_dirs == 1
    assert summary.removed_root is False
    assert fresh.exists()
    assert not stale.exists()


def test_sweep_removes_empty_root(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "scratch")
    scratch.path.mkdir()
    leftover = scratch.path / "leftover.go"
    leftover.write_text("", encoding="utf-8")
    _age(leftover, 10)

    summary = scratch.sweep(max_age_seconds=0)

    assert summary.removed_files == 1
    assert summary.removed_root is True
    assert not scratch.path.exists()


def test_sweep_missing_directory_is_noop(tmp_path: Path) -> None:
    summary = ScratchDirectory(tmp_path / "missing").sweep()
    assert (summary.removed_files, summary.removed_dirs, summary.removed_root) == (0, 0, False)


def test_sweep_keeps_root_while_leased(tmp_path: Path) -> None:
    scratch = ScratchDirectory(tmp_path / "scratch")
    with scratch.lease():
        summary = scratch.sweep(max_age_seconds=0)
        assert summary.removed_root is False
        assert scratch.path.is_dir()
