"""Unit tests for FileWriter."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from cluster_gitops.integrations.filewriter import TEMP_DIR_NAME, FileWriter, FileWriterError


@pytest.mark.unit
class TestFileWriter:
    """Tests for writing files below a scoped directory."""

    def test_creates_root(self, tmp_path: Path) -> None:
        """The root directory is created on construction."""
        writer = FileWriter(tmp_path / "a" / "b")

        assert writer.dir.is_dir()

    def test_root_not_creatable(self, tmp_path: Path) -> None:
        """A file in the way of the root is an error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(FileWriterError) as exc_info:
            FileWriter(blocker / "sub")

        assert exc_info.value.path == blocker / "sub"

    def test_write_bytes_and_text(self, tmp_path: Path) -> None:
        """Both bytes and text are written verbatim."""
        writer = FileWriter(tmp_path)

        first = writer.write("a.yaml", b"kind: A\n")
        second = writer.write("nested/b.yaml", "kind: B\n")

        assert first.read_bytes() == b"kind: A\n"
        assert second == tmp_path / "nested" / "b.yaml"
        assert second.read_text() == "kind: B\n"

    def test_write_replaces(self, tmp_path: Path) -> None:
        """Writing twice leaves only the latest content and no temp files."""
        writer = FileWriter(tmp_path)

        writer.write("a.yaml", "old")
        writer.write("a.yaml", "new")

        assert (tmp_path / "a.yaml").read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["a.yaml"]

    def test_non_persistent_goes_to_temp(self, tmp_path: Path) -> None:
        """Non-persistent files land in the temp directory."""
        writer = FileWriter(tmp_path)

        path = writer.write("scratch.yaml", "x", persistent=False)

        assert path == tmp_path / TEMP_DIR_NAME / "scratch.yaml"

    def test_clean_up_temp(self, tmp_path: Path) -> None:
        """clean_up_temp removes the temp directory and nothing else."""
        writer = FileWriter(tmp_path)
        writer.write("keep.yaml", "x")
        writer.write("scratch.yaml", "x", persistent=False)

        writer.clean_up_temp()
        writer.clean_up_temp()

        assert not writer.temp_dir.exists()
        assert (tmp_path / "keep.yaml").exists()

    def test_with_dir(self, tmp_path: Path) -> None:
        """with_dir scopes a new writer below the current one."""
        sub = FileWriter(tmp_path).with_dir("git/fleet")

        assert sub.dir == tmp_path / "git" / "fleet"
        assert sub.dir.is_dir()

    def test_write_failure(self, tmp_path: Path) -> None:
        """OS errors while writing are wrapped and leave no temp file."""
        writer = FileWriter(tmp_path)

        with (
            patch("os.replace", side_effect=OSError("disk full")),
            pytest.raises(FileWriterError, match="disk full"),
        ):
            writer.write("a.yaml", "x")

        assert list(tmp_path.iterdir()) == []
