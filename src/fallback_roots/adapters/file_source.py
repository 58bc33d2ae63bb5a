"""
File adapter — reads certdata.txt from the local filesystem.

Implements the CertdataSource port. The file handle is closed before the
bytes are handed to the parser, on success and on error alike.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()


class FileCertdataSource:
    """Read the trust store from a local path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def fetch(self) -> Result[bytes]:
        """
        Read the whole file.

        Returns Result[bytes] on success,
        or Result.failure(IO_ERROR, ...) if the file cannot be opened or read.
        """
        return Result.from_computation(
            self._do_read,
            ErrorCode.IO_ERROR,
            f"unable to open {str(self._path)!r}",
        )

    def _do_read(self) -> bytes:
        with self._path.open("rb") as handle:
            data = handle.read()
        log.info("source.fetched", path=str(self._path), size_bytes=len(data))
        return data
