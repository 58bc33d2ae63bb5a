"""
Shared test fixtures for the fallback-roots test suite.

Certificates are generated on the fly with cryptography (self-signed EC
roots), and certdata.txt text is rendered from them in the NSS object
format, so no binary fixtures are checked in.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

from fallback_roots.domain.models import Constraint, TrustRecord

CertificateFactory = Callable[..., x509.Certificate]


def _make_certificate(
    common_name: str,
    organization: str | None = None,
    serial: int | None = None,
) -> x509.Certificate:
    attributes = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if organization is not None:
        attributes.insert(0, x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    name = x509.Name(attributes)
    key = ec.generate_private_key(ec.SECP256R1())
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(serial if serial is not None else x509.random_serial_number())
        .not_valid_before(datetime(2020, 1, 1, tzinfo=UTC))
        .not_valid_after(datetime(2045, 1, 1, tzinfo=UTC))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


def octal_lines(data: bytes, width: int = 16) -> str:
    """Render bytes as certdata MULTILINE_OCTAL lines (\\ooo escapes)."""
    rows = []
    for start in range(0, len(data), width):
        rows.append("".join(f"\\{byte:03o}" for byte in data[start : start + width]))
    return "\n".join(rows)


def _certdata_entry(
    certificate: x509.Certificate,
    label: str,
    trust: str = "CKT_NSS_TRUSTED_DELEGATOR",
    distrust_after: str | None = None,
    with_trust_object: bool = True,
) -> str:
    der = certificate.public_bytes(Encoding.DER)
    if distrust_after is None:
        distrust_line = "CKA_NSS_SERVER_DISTRUST_AFTER CK_BBOOL CK_FALSE"
    else:
        distrust_line = (
            "CKA_NSS_SERVER_DISTRUST_AFTER MULTILINE_OCTAL\n"
            f"{octal_lines(distrust_after.encode('ascii'))}\nEND"
        )
    entry = (
        f"\n#\n# Certificate \"{label}\"\n#\n"
        "CKA_CLASS CK_OBJECT_CLASS CKO_CERTIFICATE\n"
        "CKA_TOKEN CK_BBOOL CK_TRUE\n"
        "CKA_PRIVATE CK_BBOOL CK_FALSE\n"
        "CKA_MODIFIABLE CK_BBOOL CK_FALSE\n"
        f"CKA_LABEL UTF8 \"{label}\"\n"
        "CKA_CERTIFICATE_TYPE CK_CERTIFICATE_TYPE CKC_X_509\n"
        "CKA_VALUE MULTILINE_OCTAL\n"
        f"{octal_lines(der)}\n"
        "END\n"
        "CKA_NSS_MOZILLA_CA_POLICY CK_BBOOL CK_TRUE\n"
        f"{distrust_line}\n"
        "CKA_NSS_EMAIL_DISTRUST_AFTER CK_BBOOL CK_FALSE\n"
    )
    if with_trust_object:
        entry += (
            f"\n# Trust for \"{label}\"\n"
            "CKA_CLASS CK_OBJECT_CLASS CKO_NSS_TRUST\n"
            "CKA_TOKEN CK_BBOOL CK_TRUE\n"
            f"CKA_LABEL UTF8 \"{label}\"\n"
            "CKA_CERT_SHA1_HASH MULTILINE_OCTAL\n"
            f"{octal_lines(hashlib.sha1(der).digest())}\n"
            "END\n"
            f"CKA_TRUST_SERVER_AUTH CK_TRUST {trust}\n"
            "CKA_TRUST_EMAIL_PROTECTION CK_TRUST CKT_NSS_MUST_VERIFY_TRUST\n"
            "CKA_TRUST_STEP_UP_APPROVED CK_BBOOL CK_FALSE\n"
        )
    return entry


def _render_certdata(entries: Iterable[str]) -> str:
    header = (
        "# This Source Code Form is subject to the terms of the Mozilla Public\n"
        "#\n"
        "# certdata.txt test fixture\n"
        "BEGINDATA\n"
        "CKA_CLASS CK_OBJECT_CLASS CKO_NSS_BUILTIN_ROOT_LIST\n"
        "CKA_TOKEN CK_BBOOL CK_TRUE\n"
        "CKA_LABEL UTF8 \"Mozilla Builtin Roots\"\n"
    )
    return header + "".join(entries)


@pytest.fixture()
def make_certificate() -> CertificateFactory:
    """Factory for self-signed root certificates: make_certificate("Root A")."""
    return _make_certificate


@pytest.fixture()
def make_record() -> Callable[..., TrustRecord]:
    """Factory for TrustRecords backed by freshly generated certificates."""

    def _factory(
        common_name: str,
        constraints: tuple[Constraint, ...] = (),
        certificate: x509.Certificate | None = None,
        label: str | None = None,
    ) -> TrustRecord:
        return TrustRecord(
            certificate=certificate if certificate is not None else _make_certificate(common_name),
            constraints=constraints,
            label=label or common_name,
        )

    return _factory


@pytest.fixture()
def certdata_entry() -> Callable[..., str]:
    """Render one certificate (plus its trust object) in certdata.txt syntax."""
    return _certdata_entry


@pytest.fixture()
def render_certdata() -> Callable[[Iterable[str]], str]:
    """Wrap rendered entries with the certdata.txt header and root-list object."""
    return _render_certdata


@pytest.fixture(autouse=True)
def _reset_structlog():
    """main() points structlog at the current stderr; undo it after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove FALLBACK_ROOTS_* variables so settings come from defaults and arguments."""
    for name in list(os.environ):
        if name.startswith("FALLBACK_ROOTS_"):
            monkeypatch.delenv(name)
    return monkeypatch
