"""
Domain models — immutable records flowing through the bundle pipeline.

A TrustRecord pairs a parsed X.509 root with the trust constraints the
trust store attaches to it. Records are created by the parser and never
mutated afterwards; every later stage builds new sequences.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeAlias

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding


@dataclass(frozen=True, slots=True)
class DistrustAfter:
    """
    Server-auth trust ends for certificates issued after `moment`.

    Sourced from CKA_NSS_SERVER_DISTRUST_AFTER in certdata.txt.
    """

    moment: datetime


# Union of known constraint descriptors. The pipeline only ever asks whether
# a record has any, so new kinds can be added without touching it.
Constraint: TypeAlias = DistrustAfter


@dataclass(frozen=True, slots=True)
class TrustRecord:
    """
    A root certificate plus its trust constraints.

    `subject` is the RFC 4514 rendering of the subject name and is the
    primary sort key; `raw` is the DER encoding and the identity of the
    certificate (two records are the same root only if `raw` matches).
    """

    certificate: x509.Certificate = field(repr=False)
    constraints: tuple[Constraint, ...] = ()
    label: str | None = None

    @property
    def subject(self) -> str:
        return self.certificate.subject.rfc4514_string()

    @property
    def raw(self) -> bytes:
        return self.certificate.public_bytes(Encoding.DER)

    @property
    def is_constrained(self) -> bool:
        return len(self.constraints) > 0


class DuplicatePolicy(Enum):
    """What to do with records whose DER bytes are identical."""

    KEEP = "keep"
    COLLAPSE = "collapse"
