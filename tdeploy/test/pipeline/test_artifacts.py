"""Tests for tdeploy.pipeline.artifacts."""

from __future__ import annotations

from pathlib import Path

from tdeploy.core.result import Err, Ok
from tdeploy.pipeline.artifacts import collect_artifacts


def test_collects_sorted_matches_in_pattern_order(tmp_path: Path) -> None:
    (tmp_path / "binary-b").mkdir()
    (tmp_path / "binary-a").mkdir()
    (tmp_path / "appimage").mkdir()
    (tmp_path / "binary-b" / "t.tar.gz").write_bytes(b"")
    (tmp_path / "binary-a" / "t.zip").write_bytes(b"")
    (tmp_path / "appimage" / "t.AppImage").write_bytes(b"")

    result = collect_artifacts(pipeline_workspace=tmp_path, patterns=("binary-*/*", "appimage/*"))

    assert result == Ok(
        [
            tmp_path / "binary-a" / "t.zip",
            tmp_path / "binary-b" / "t.tar.gz",
            tmp_path / "appimage" / "t.AppImage",
        ]
    )


def test_unmatched_pattern_is_an_error(tmp_path: Path) -> None:
    (tmp_path / "binary-a").mkdir()
    (tmp_path / "binary-a" / "t.zip").write_bytes(b"")

    result = collect_artifacts(pipeline_workspace=tmp_path, patterns=("binary-*/*", "appimage/*"))

    assert isinstance(result, Err)
    assert result.error.kind == "artifacts_missing"
    assert "appimage/*" in result.error.message


def test_directories_are_not_artifacts(tmp_path: Path) -> None:
    (tmp_path / "binary-a" / "nested").mkdir(parents=True)
    result = collect_artifacts(pipeline_workspace=tmp_path, patterns=("binary-*/*",))
    assert isinstance(result, Err)


def test_hidden_files_are_not_artifacts(tmp_path: Path) -> None:
    (tmp_path / "appimage").mkdir()
    (tmp_path / "appimage" / ".gitkeep").write_bytes(b"")
    (tmp_path / "appimage" / ".DS_Store").write_bytes(b"")
    (tmp_path / "appimage" / "t.AppImage").write_bytes(b"")

    assert collect_artifacts(pipeline_workspace=tmp_path, patterns=("appimage/*",)) == Ok(
        [tmp_path / "appimage" / "t.AppImage"]
    )


def test_hidden_directories_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "binary-a").mkdir()
    (tmp_path / "binary-a" / "t.zip").write_bytes(b"")
    (tmp_path / ".cache").mkdir()
    (tmp_path / ".cache" / "t.zip").write_bytes(b"")

    assert collect_artifacts(pipeline_workspace=tmp_path, patterns=("*/t.zip",)) == Ok(
        [tmp_path / "binary-a" / "t.zip"]
    )


def test_only_hidden_files_count_as_missing(tmp_path: Path) -> None:
    (tmp_path / "appimage").mkdir()
    (tmp_path / "appimage" / ".gitkeep").write_bytes(b"")

    result = collect_artifacts(pipeline_workspace=tmp_path, patterns=("appimage/*",))

    assert isinstance(result, Err)
    assert result.error.kind == "artifacts_missing"
