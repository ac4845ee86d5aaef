"""Compute TLSA certificate association data (RFC 6698 section 2.1)."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Callable, Iterable

from .certs import load_certificate
from .config import TlsaParameters
from .models import Certificate, MissingDataError, UnsupportedParameterError

LOG = logging.getLogger("tlsa_ctl")

MATCHING_TYPES: dict[int, Callable[[bytes], str]] = {
    0: lambda data: data.hex(),
    1: lambda data: hashlib.sha256(data).hexdigest(),
    2: lambda data: hashlib.sha384(data).hexdigest(),
}


def _selected_bytes(certificate: Certificate, selector: int) -> bytes:
    """Return the certificate bytes picked by the selector."""
    if selector == 0:
        if not certificate.has_certificate():
            raise MissingDataError("Selector 0 needs a full certificate, but only a public key was loaded.")
        return certificate.der
    if selector == 1:
        return certificate.spki
    raise UnsupportedParameterError(f"Unsupported TLSA selector {selector}")


def certificate_association(certificate: Certificate, selector: int, matching_type: int) -> str:
    """Return the hex association data for one certificate."""
    digest = MATCHING_TYPES.get(matching_type)
    if digest is None:
        raise UnsupportedParameterError(f"Unsupported TLSA matching type {matching_type}")
    return digest(_selected_bytes(certificate, selector))


def certificate_associations(paths: Iterable[str | Path], params: TlsaParameters) -> list[str]:
    """Load each certificate file once and return one association per file."""
    associations = []
    for path in paths:
        association = certificate_association(load_certificate(path), params.selector, params.matching_type)
        LOG.debug("Association for %s: %s", path, association)
        associations.append(association)
    return associations
