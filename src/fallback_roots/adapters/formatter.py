"""
Source formatter adapter — validates generated Python before it is written.

Implements the SourceFormatter port. The text must parse as a Python
module and must end with exactly one newline. Lines are never rewritten:
the PEM_ROOTS literal, subject headers included, must round-trip byte
for byte.
"""

from __future__ import annotations

import ast

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()


def normalize(source: str) -> str:
    """End the text with exactly one newline; everything before it is kept as is."""
    return source.rstrip("\n") + "\n"


class PythonSourceFormatter:
    """Validate with ast.parse after fixing the trailing newline."""

    def __init__(self, filename: str = "<generated>") -> None:
        self._filename = filename

    def format(self, source: str) -> Result[str]:
        """
        Returns Result[str] with the normalized text,
        or Result.failure(FORMAT_ERROR, ...) if the text is not valid Python.
        """
        return Result.from_computation(
            lambda: self._do_format(source),
            ErrorCode.FORMAT_ERROR,
            "failed to format source",
        )

    def _do_format(self, source: str) -> str:
        formatted = normalize(source)
        ast.parse(formatted, filename=self._filename)
        log.debug("formatter.complete", lines=formatted.count("\n"))
        return formatted
