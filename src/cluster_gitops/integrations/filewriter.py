"""Scoped file writer for the local repository checkout.

Files are written through a temporary file in the destination directory and
moved into place with ``os.replace`` so a half-written file is never visible to
``git add``. Non-persistent files land in a ``generated/`` scratch directory
that ``clean_up_temp`` removes.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger()

TEMP_DIR_NAME = "generated"


class FileWriterError(Exception):
    """Raised when a directory or file cannot be written."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class FileWriter:
    """Writes files below a fixed directory."""

    def __init__(self, root: Path | str) -> None:
        """Create the writer, creating ``root`` if needed.

        Raises:
            FileWriterError: If the directory cannot be created.
        """
        self._dir = Path(root)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileWriterError(f"error creating directory {self._dir}: {e}", self._dir) from e

    @property
    def dir(self) -> Path:
        """Directory this writer is scoped to."""
        return self._dir

    @property
    def temp_dir(self) -> Path:
        return self._dir / TEMP_DIR_NAME

    def with_dir(self, sub_dir: str | Path) -> FileWriter:
        """Return a writer scoped to a subdirectory, creating it."""
        return FileWriter(self._dir / sub_dir)

    def clean_up_temp(self) -> None:
        """Remove stale temporary artifacts."""
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)
            logger.debug("removed_temp_dir", path=str(self.temp_dir))

    def write(self, file_name: str, content: bytes | str, *, persistent: bool = True) -> Path:
        """Write ``content`` to ``file_name`` atomically.

        Args:
            file_name: Name relative to the writer's directory.
            content: File content.
            persistent: Write next to the other files rather than in the
                temporary directory.

        Returns:
            Path of the written file.

        Raises:
            FileWriterError: If the file cannot be written.
        """
        target_dir = self._dir if persistent else self.temp_dir
        target = target_dir / file_name
        data = content.encode() if isinstance(content, str) else content
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise FileWriterError(f"error writing {target}: {e}", target) from e
        logger.debug("wrote_file", path=str(target), size=len(data))
        return target
