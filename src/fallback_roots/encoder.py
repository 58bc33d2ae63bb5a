"""
Bundle encoder — renders the selected roots as an importable Python module.

Each root becomes a triple inside one raw string literal:

    # <subject, RFC 4514>
    # <sha256 of the DER, lowercase hex>
    -----BEGIN CERTIFICATE-----
    ...
    -----END CERTIFICATE-----

The literal sits between a fixed preamble (provenance header, imports, the
PEM loader) and a fixed epilogue (the module-level bundle). The generated
module parses its own constant at import time and refuses any PEM block
that is not a certificate.

Subjects are not escaped beyond RFC 4514, which already puts a backslash
before every quote; the raw literal keeps that backslash, so a quote in a
subject cannot close it. Anything that still breaks the module is reported
by the formatter as FORMAT_ERROR.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from cryptography.hazmat.primitives.serialization import Encoding

from fallback_roots.domain.models import TrustRecord

GENERATED_HEADER = "# Code generated by fallback-roots; DO NOT EDIT."

PREAMBLE = f'''{GENERATED_HEADER}
"""
Fallback root certificates.

Consulted only when the host trust store cannot be used. Regenerate with
`fallback-roots` instead of editing this file.
"""

from __future__ import annotations

import base64
import re
import sys

from cryptography import x509

if sys.version_info < (3, 10):
    raise ImportError("the fallback bundle requires Python 3.10 or newer")

_PEM_BLOCK = re.compile(
    r"-----BEGIN (?P<label>[^\\r\\n-]+)-----\\r?\\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)


def _must_parse(data: str) -> list[x509.Certificate]:
    roots: list[x509.Certificate] = []
    for block in _PEM_BLOCK.finditer(data):
        label = block.group("label")
        if label != "CERTIFICATE":
            raise ValueError("unexpected PEM block type: " + label)
        der = base64.b64decode("".join(block.group("body").split()), validate=True)
        roots.append(x509.load_der_x509_certificate(der))
    return roots


# Format of the PEM list is:
#   * Subject name
#   * SHA256 hash
#   * PEM block
'''

EPILOGUE = '''

BUNDLE = _must_parse(PEM_ROOTS)


def roots() -> list[x509.Certificate]:
    """Return the fallback roots in bundle order."""
    return list(BUNDLE)
'''

_LITERAL_OPEN = 'PEM_ROOTS = r"""\n'
_LITERAL_CLOSE = '"""'


def fingerprint(record: TrustRecord) -> str:
    """Lowercase hex SHA-256 of the certificate's DER bytes."""
    return hashlib.sha256(record.raw).hexdigest()


def encode_record(record: TrustRecord) -> str:
    pem = record.certificate.public_bytes(Encoding.PEM).decode("ascii")
    return f"# {record.subject}\n# {fingerprint(record)}\n{pem}"


def encode_bundle(records: Iterable[TrustRecord]) -> str:
    """Concatenate the header+PEM triple of every record, in the given order."""
    return "".join(encode_record(record) for record in records)


def render_module(records: Iterable[TrustRecord]) -> str:
    """Assemble the full module source: preamble, PEM_ROOTS literal, epilogue."""
    return PREAMBLE + _LITERAL_OPEN + encode_bundle(records) + _LITERAL_CLOSE + EPILOGUE
