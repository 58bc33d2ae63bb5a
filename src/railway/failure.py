"""
Failure description — structured error information for the failure track.

Every stage of the bundle generator reports its problems as a
FailureDescription instead of raising. The ErrorCode names the failing stage
so the composition root can print a one-line diagnostic and exit.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Error codes for the failure track, one per failing stage.

    Acquisition: IO, NETWORK, UNEXPECTED_RESPONSE, CONTENT_TYPE
    Transformation: PARSE, EMPTY_RESULT, FORMAT
    Startup: CONFIGURATION
    """

    IO_ERROR = "IO_ERROR"
    """Local file could not be opened, read or written."""

    NETWORK_ERROR = "NETWORK_ERROR"
    """HTTP request could not be completed."""

    UNEXPECTED_RESPONSE_ERROR = "UNEXPECTED_RESPONSE_ERROR"
    """HTTP response status was not 200 OK."""

    CONTENT_TYPE_ERROR = "CONTENT_TYPE_ERROR"
    """HTTP response declared a media type other than text/plain."""

    PARSE_ERROR = "PARSE_ERROR"
    """Trust-store source violated the certdata grammar."""

    EMPTY_RESULT_ERROR = "EMPTY_RESULT_ERROR"
    """Trust-store source parsed to zero roots."""

    FORMAT_ERROR = "FORMAT_ERROR"
    """Generated source is not syntactically valid."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings failed validation."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.PARSE_ERROR, "missing END")
    >>> desc.code
    <ErrorCode.PARSE_ERROR: 'PARSE_ERROR'>
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def describe(self) -> str:
        """
        Single-line summary: message, followed by the underlying cause if any.

        Used as the user-visible diagnostic, so it never contains a traceback.
        """
        if self.exception is None:
            return self.message
        cause = str(self.exception) or type(self.exception).__name__
        return f"{self.message}: {cause}"

    def full_stack_trace(self) -> str:
        """Message plus the formatted exception chain, for debug logging."""
        if self.exception is None:
            return self.message
        tb = "".join(traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__))
        return f"{self.message}\n{tb}"
