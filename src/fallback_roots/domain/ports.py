"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the pipeline needs without specifying HOW it's done.
Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy the
contract simply by implementing the method — no inheritance.

Flow:
  1. CertdataSource     → raw trust-store bytes (file or HTTP)
  2. TrustRecordParser  → TrustRecords
  3. SourceFormatter    → validated module text with a single trailing newline
  4. ArtifactWriter     → file on disk
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from railway.result import Result

from fallback_roots.domain.models import TrustRecord


@runtime_checkable
class CertdataSource(Protocol):
    """
    Port: obtain the raw bytes of a certdata.txt trust store.

    Returns Result[bytes]; failures carry IO_ERROR, NETWORK_ERROR,
    UNEXPECTED_RESPONSE_ERROR or CONTENT_TYPE_ERROR.
    """

    def fetch(self) -> Result[bytes]: ...


@runtime_checkable
class TrustRecordParser(Protocol):
    """
    Port: turn trust-store bytes into TrustRecords.

    Must be deterministic for identical input and must return PARSE_ERROR
    rather than a partial result when the input is malformed. An empty list
    is a valid parser answer; the pipeline decides that it is fatal.
    """

    def parse(self, data: bytes) -> Result[list[TrustRecord]]: ...


@runtime_checkable
class SourceFormatter(Protocol):
    """Port: validate generated module source (FORMAT_ERROR on invalid text)."""

    def format(self, source: str) -> Result[str]: ...


@runtime_checkable
class ArtifactWriter(Protocol):
    """
    Port: persist the generated module.

    Replaces whatever was at the destination; returns the path written.
    """

    def write(self, content: str) -> Result[Path]: ...
