"""
Artifact writer adapter — persists the generated module.

Implements the ArtifactWriter port with a write-then-rename:
  1. write the text to a temporary file next to the destination
  2. flush + fsync
  3. os.replace() onto the destination (atomic on POSIX and Windows)

A crash before step 3 leaves the previous artifact untouched. On failure
the temporary file is removed and IO_ERROR is returned.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

ARTIFACT_MODE = 0o644


class FileArtifactWriter:
    """Replace the file at `output` with new content."""

    def __init__(self, output: str | Path) -> None:
        self._output = Path(output)

    def write(self, content: str) -> Result[Path]:
        """
        Returns Result[Path] with the destination on success,
        or Result.failure(IO_ERROR, ...) on any filesystem error.
        """
        return Result.from_computation(
            lambda: self._do_write(content),
            ErrorCode.IO_ERROR,
            f"failed to write to {str(self._output)!r}",
        )

    def _do_write(self, content: str) -> Path:
        data = content.encode("utf-8")
        directory = self._output.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self._output.name}.", suffix=".tmp", dir=directory
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(temp_path, ARTIFACT_MODE)
            os.replace(temp_path, self._output)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        log.info("artifact.written", path=str(self._output), size_bytes=len(data))
        return self._output
