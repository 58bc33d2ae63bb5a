"""
NSS certdata.txt parser adapter — trust-store text to TrustRecords.

Adapter layer — implements the TrustRecordParser port using:
  - a line-oriented reader for the NSS object grammar
  - cryptography (PyCA): DER → x509.Certificate

certdata.txt grammar (after the BEGINDATA marker):

    CKA_CLASS CK_OBJECT_CLASS CKO_CERTIFICATE      ← starts a new object
    CKA_LABEL UTF8 "Example Root CA"
    CKA_VALUE MULTILINE_OCTAL
    \\060\\202\\005\\141...                           ← octal escapes, any number of lines
    END
    CKA_NSS_SERVER_DISTRUST_AFTER CK_BBOOL CK_FALSE

Pipeline:
  raw bytes
    → objects (dict of attribute name → (type, value))
    → CKO_CERTIFICATE objects paired with CKO_NSS_TRUST objects by SHA-1 of the DER
    → roots trusted as delegators for server auth
    → TrustRecord (with DistrustAfter when the store schedules a distrust date)

Any grammar violation fails the whole parse; a partial list is never returned.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeAlias

import structlog
from cryptography import x509
from railway import ErrorCode
from railway.result import Result

from fallback_roots.domain.models import Constraint, DistrustAfter, TrustRecord

log = structlog.get_logger()

CERTIFICATE_CLASS = "CKO_CERTIFICATE"
TRUST_CLASS = "CKO_NSS_TRUST"
TRUSTED_DELEGATOR = "CKT_NSS_TRUSTED_DELEGATOR"

_OCTAL_LINE = re.compile(r"^(?:\\[0-7]{3})*$")
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")
_DISTRUST_AFTER_FORMAT = "%y%m%d%H%M%SZ"


class CertdataSyntaxError(ValueError):
    """certdata.txt does not follow the NSS object grammar."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


@dataclass(frozen=True, slots=True)
class _Attribute:
    type: str
    value: str | bytes
    line: int


_Object: TypeAlias = dict[str, _Attribute]


# ─────────────────────── Grammar ───────────────────────


def _decode_octal(lines: list[tuple[int, str]]) -> bytes:
    data = bytearray()
    for number, line in lines:
        if not _OCTAL_LINE.match(line):
            raise CertdataSyntaxError("malformed MULTILINE_OCTAL data", number)
        data.extend(int(escape, 8) for escape in _OCTAL_ESCAPE.findall(line))
    return bytes(data)


def _unquote(value: str, number: int) -> str:
    if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
        raise CertdataSyntaxError(f"UTF8 value is not quoted: {value!r}", number)
    return value[1:-1]


def read_objects(text: str) -> list[_Object]:
    """
    Split certdata text into objects.

    Blank lines, `#` comments and the CVS_ID/BEGINDATA header lines are
    skipped. Each CKA_CLASS attribute opens a new object.
    """
    objects: list[_Object] = []
    current: _Object | None = None
    lines = list(enumerate(text.splitlines(), start=1))
    index = 0

    while index < len(lines):
        number, raw_line = lines[index]
        index += 1
        line = raw_line.strip()
        if not line or line.startswith("#") or line == "BEGINDATA" or line.startswith("CVS_ID"):
            continue

        parts = line.split(maxsplit=2)
        if len(parts) < 2:
            raise CertdataSyntaxError(f"expected 'NAME TYPE [VALUE]', got {line!r}", number)
        name, attr_type = parts[0], parts[1]

        value: str | bytes
        if attr_type == "MULTILINE_OCTAL":
            block: list[tuple[int, str]] = []
            while index < len(lines) and lines[index][1].strip() != "END":
                block.append((lines[index][0], lines[index][1].strip()))
                index += 1
            if index >= len(lines):
                raise CertdataSyntaxError(f"unterminated MULTILINE_OCTAL value for {name}", number)
            index += 1  # consume END
            value = _decode_octal(block)
        elif len(parts) < 3:
            raise CertdataSyntaxError(f"missing value for {name}", number)
        elif attr_type == "UTF8":
            value = _unquote(parts[2], number)
        else:
            value = parts[2]

        if name == "CKA_CLASS":
            current = {}
            objects.append(current)
        elif current is None:
            raise CertdataSyntaxError(f"attribute {name} appears before any CKA_CLASS", number)
        current[name] = _Attribute(type=attr_type, value=value, line=number)

    return objects


# ─────────────────────── Object Interpretation ───────────────────────


def _required(obj: _Object, name: str, kind: type, context: str) -> _Attribute:
    attribute = obj.get(name)
    if attribute is None:
        raise CertdataSyntaxError(f"{context} has no {name}")
    if not isinstance(attribute.value, kind):
        raise CertdataSyntaxError(f"{context} has unexpected {name} type {attribute.type}", attribute.line)
    return attribute


def _class_of(obj: _Object) -> str:
    value = obj["CKA_CLASS"].value
    return value if isinstance(value, str) else ""


def _label_of(obj: _Object) -> str:
    attribute = obj.get("CKA_LABEL")
    return attribute.value if attribute is not None and isinstance(attribute.value, str) else "<unlabelled>"


def _distrust_after(obj: _Object, label: str) -> Constraint | None:
    """
    Interpret CKA_NSS_SERVER_DISTRUST_AFTER.

    `CK_BBOOL CK_FALSE` means no distrust date; otherwise the value is an
    ASN.1 UTCTime string (YYMMDDHHMMSSZ) stored as octal bytes.
    """
    attribute = obj.get("CKA_NSS_SERVER_DISTRUST_AFTER")
    if attribute is None:
        return None
    if attribute.type == "CK_BBOOL":
        if attribute.value == "CK_FALSE":
            return None
        raise CertdataSyntaxError(
            f"unexpected CKA_NSS_SERVER_DISTRUST_AFTER value {attribute.value!r} for {label!r}",
            attribute.line,
        )
    if not isinstance(attribute.value, bytes):
        raise CertdataSyntaxError(
            f"unexpected CKA_NSS_SERVER_DISTRUST_AFTER type {attribute.type} for {label!r}",
            attribute.line,
        )
    try:
        moment = datetime.strptime(attribute.value.decode("ascii"), _DISTRUST_AFTER_FORMAT)
    except (UnicodeDecodeError, ValueError) as e:
        raise CertdataSyntaxError(
            f"invalid distrust-after time for {label!r}: {attribute.value!r}", attribute.line
        ) from e
    return DistrustAfter(moment=moment.replace(tzinfo=UTC))


def _server_auth_trust(objects: list[_Object]) -> dict[bytes, str]:
    """Map certificate SHA-1 → CKA_TRUST_SERVER_AUTH value."""
    trust: dict[bytes, str] = {}
    for obj in objects:
        if _class_of(obj) != TRUST_CLASS:
            continue
        label = _label_of(obj)
        sha1 = _required(obj, "CKA_CERT_SHA1_HASH", bytes, f"trust object {label!r}")
        server_auth = _required(obj, "CKA_TRUST_SERVER_AUTH", str, f"trust object {label!r}")
        trust[sha1.value] = server_auth.value  # type: ignore[index,assignment]
    return trust


def build_records(objects: list[_Object]) -> list[TrustRecord]:
    """
    Pair certificates with their trust objects and keep server-auth delegators.

    Certificates keep their file order. A certificate without a trust
    object is an error; a trust object without a certificate is ignored.
    """
    trust = _server_auth_trust(objects)
    records: list[TrustRecord] = []

    for obj in objects:
        if _class_of(obj) != CERTIFICATE_CLASS:
            continue
        label = _label_of(obj)
        der: bytes = _required(obj, "CKA_VALUE", bytes, f"certificate {label!r}").value  # type: ignore[assignment]
        level = trust.get(hashlib.sha1(der).digest())
        if level is None:
            raise CertdataSyntaxError(f"missing trust object for certificate {label!r}")
        if level != TRUSTED_DELEGATOR:
            log.debug("parser.skipped_untrusted", label=label, trust=level)
            continue

        try:
            certificate = x509.load_der_x509_certificate(der)
            # names decode lazily; surface a bad subject here rather than in the sorter
            certificate.subject.rfc4514_string()
        except ValueError as e:
            raise CertdataSyntaxError(f"certificate {label!r} could not be decoded: {e}") from e

        distrust = _distrust_after(obj, label)
        constraints: tuple[Constraint, ...] = (distrust,) if distrust is not None else ()
        records.append(TrustRecord(certificate=certificate, constraints=constraints, label=label))

    return records


# ─────────────────────── Public Parser Class ───────────────────────


class NssCertdataParser:
    """
    Parse NSS certdata.txt into TrustRecords.

    Implements the TrustRecordParser port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def parse(self, data: bytes) -> Result[list[TrustRecord]]:
        """
        Returns Result[list[TrustRecord]] on success (possibly empty),
        or Result.failure(PARSE_ERROR, ...) on any grammar or DER problem.
        """
        return Result.from_computation(
            lambda: self._do_parse(data),
            ErrorCode.PARSE_ERROR,
            "failed to parse certdata",
        )

    def _do_parse(self, data: bytes) -> list[TrustRecord]:
        objects = read_objects(data.decode("utf-8"))
        records = build_records(objects)
        log.info(
            "parser.complete",
            objects=len(objects),
            roots=len(records),
            constrained=sum(1 for record in records if record.is_constrained),
        )
        return records
