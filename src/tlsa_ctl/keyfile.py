"""Read TSIG keys from Bind-formatted KEY record files."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

import dns.exception
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.tokenizer
import dns.ttl

from .models import FileAccessError, KeyFileSyntaxError, TsigKey, UnexpectedRecordError

LOG = logging.getLogger("tlsa_ctl")


def _read_class_and_type(tok: dns.tokenizer.Tokenizer) -> tuple[int, int]:
    """Consume the optional TTL and class fields, then the record type."""
    rdclass = dns.rdataclass.IN
    token = tok.get()
    # TTL and class may appear in either order
    for _ in range(2):
        if not token.is_identifier():
            break
        try:
            dns.ttl.from_text(token.value)
        except dns.ttl.BadTTL:
            try:
                rdclass = dns.rdataclass.from_text(token.value)
            except dns.rdataclass.UnknownRdataclass:
                break
        token = tok.get()
    if not token.is_identifier():
        raise dns.exception.SyntaxError("missing record type")
    return rdclass, dns.rdatatype.from_text(token.value)


def _read_key(tok: dns.tokenizer.Tokenizer, path: Path) -> TsigKey:
    """Parse one KEY record from the tokenizer."""
    owner = tok.get_name(dns.name.root)
    rdclass, rdtype = _read_class_and_type(tok)
    if rdclass != dns.rdataclass.IN:
        raise UnexpectedRecordError(
            f"Unexpected class {dns.rdataclass.to_text(rdclass)} in RR from TSIG key file {path}"
        )
    if rdtype != dns.rdatatype.KEY:
        raise UnexpectedRecordError(
            f"Unexpected type {dns.rdatatype.to_text(rdtype)} in RR from TSIG key file {path}"
        )
    tok.get_uint16()  # flags
    tok.get_uint8()  # protocol
    algorithm = tok.get_uint8()
    secret = tok.concatenate_remaining_identifiers()
    try:
        base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise KeyFileSyntaxError(f"Invalid base64 secret for {owner} in TSIG key file {path}") from exc
    return TsigKey(name=owner.to_text(), algorithm=algorithm, secret=secret)


def read_tsig_keys(path: str | Path) -> list[TsigKey]:
    """Return the KEY records of a Bind key file, in file order.

    Every record must be an IN-class KEY record; anything else is rejected
    rather than skipped.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Failed to open TSIG file {path}: {exc}") from exc

    keys: list[TsigKey] = []
    tok = dns.tokenizer.Tokenizer(text, str(path))
    try:
        while True:
            token = tok.get()
            if token.is_eof():
                break
            if token.is_eol():
                continue
            tok.unget(token)
            keys.append(_read_key(tok, path))
    except dns.exception.DNSException as exc:
        raise KeyFileSyntaxError(f"Failed to parse TSIG key file {path}: {exc}") from exc

    LOG.debug("Read %d TSIG key(s) from %s", len(keys), path)
    return keys
