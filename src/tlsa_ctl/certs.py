"""Load certificates and public keys from PEM files."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Iterable

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, load_der_public_key
from cryptography.x509.oid import NameOID

from .models import Certificate, DecodeError, FileAccessError, ParseError, UnsupportedTypeError

LOG = logging.getLogger("tlsa_ctl")

PEM_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n"
    rb"(?P<body>.*?)"
    rb"-----END (?P=label)-----",
    re.DOTALL,
)


def _read_file(path: Path) -> bytes:
    """Return the raw content of a certificate file."""
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileAccessError(f"Failed to read certificate file {path}: {exc}") from exc


def _decode_pem(content: bytes, path: Path) -> tuple[str, bytes]:
    """Return the label and DER payload of the first PEM block."""
    match = PEM_BLOCK_PATTERN.search(content)
    if not match:
        raise DecodeError(f"No PEM block found in {path}")
    # RFC 1421 style headers (Proc-Type, DEK-Info) end with a blank line
    body = match.group("body")
    if b":" in body.split(b"\n", 1)[0]:
        _, _, body = body.partition(b"\n\n")
    try:
        der = base64.b64decode(b"".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 in PEM block of {path}: {exc}") from exc
    return match.group("label").decode("ascii"), der


def _from_certificate(der: bytes, path: Path) -> Certificate:
    """Build a Certificate from a DER-encoded X.509 certificate."""
    try:
        cert = x509.load_der_x509_certificate(der)
        spki = cert.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ParseError(f"Failed to parse certificate in {path}: {exc}") from exc

    common_name = None
    attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if attributes:
        common_name = str(attributes[0].value) or None

    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        dns_names = tuple(san.value.get_values_for_type(x509.DNSName))
    except x509.ExtensionNotFound:
        dns_names = ()
    except ValueError as exc:
        raise ParseError(f"Malformed extensions in certificate {path}: {exc}") from exc

    return Certificate(spki=spki, der=der, common_name=common_name, dns_names=dns_names)


def _from_public_key(der: bytes, path: Path) -> Certificate:
    """Build a key-only Certificate from a DER SubjectPublicKeyInfo."""
    try:
        key = load_der_public_key(der)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ParseError(f"Failed to parse public key in {path}: {exc}") from exc
    spki = key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    return Certificate(spki=spki)


def load_certificate(path: str | Path) -> Certificate:
    """Load the single CERTIFICATE or PUBLIC KEY block held in ``path``."""
    path = Path(path)
    label, der = _decode_pem(_read_file(path), path)
    if label == "CERTIFICATE":
        certificate = _from_certificate(der, path)
    elif label == "PUBLIC KEY":
        certificate = _from_public_key(der, path)
    else:
        raise UnsupportedTypeError(f"Unsupported PEM block type '{label}' in {path}")
    LOG.debug("Loaded %s from %s", label.lower(), path)
    return certificate


def certificate_names(certificate: Certificate) -> set[str]:
    """Return the subject CN and SAN DNS names of a certificate."""
    names = set(certificate.dns_names)
    if certificate.common_name:
        names.add(certificate.common_name)
    return names


def names_from_files(paths: Iterable[str | Path]) -> set[str]:
    """Return the union of the names asserted by every certificate file."""
    names: set[str] = set()
    for path in paths:
        names |= certificate_names(load_certificate(path))
    return names
