"""Shared fixtures: generated certificates, key files and a stub name server."""

from __future__ import annotations

import base64
import datetime
from dataclasses import dataclass
from pathlib import Path

import dns.flags
import dns.message
import dns.opcode
import dns.rcode
import dns.rrset
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from tlsa_ctl.config import AppConfig, TlsaParameters
from tlsa_ctl.models import TransportError

SOA_TEXT = "ns1.example.com. hostmaster.example.com. 1 7200 3600 1209600 3600"
SECRET = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode("ascii")


def make_certificate(key, common_name: str | None, dns_names: list[str]) -> x509.Certificate:
    """Return a self-signed certificate for the given names."""
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "tlsa-ctl tests")]
    if common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    subject = x509.Name(attributes)
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    if dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in dns_names]),
            critical=False,
        )
    return builder.sign(key, hashes.SHA256())


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def write_file(tmp_path: Path):
    """Write bytes or text to a file under tmp_path and return its path."""

    def _write(name: str, content: bytes | str) -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def certificate(ec_key) -> x509.Certificate:
    return make_certificate(ec_key, "a.example.com", ["a.example.com", "b.example.com"])


@pytest.fixture
def cert_pem(certificate, write_file) -> Path:
    return write_file("cert.pem", certificate.public_bytes(serialization.Encoding.PEM))


@pytest.fixture
def pubkey_pem(ec_key, write_file) -> Path:
    pem = ec_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return write_file("key.pub", pem)


@pytest.fixture
def spki(ec_key) -> bytes:
    return ec_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture(scope="session")
def rsa_private_pem() -> bytes:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )


@pytest.fixture
def key_file(write_file) -> Path:
    return write_file(
        "Kexample.com.+163+01234.key",
        f"; This is a host key, keyid 1234, for example.com.\nexample.com. IN KEY 512 3 163 {SECRET}\n",
    )


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        server="192.0.2.53",
        port=53,
        tsig_file=tmp_path / "tsig.key",
        tlsa=TlsaParameters(usage=3, selector=1, matching_type=2),
        ttl=0,
        tsig_fudge=300,
        udp_payload=4096,
        log_level="DEBUG",
    )


def reply(message: dns.message.Message, rcode: int = dns.rcode.NOERROR) -> dns.message.Message:
    """Return a bare response to ``message``."""
    response = dns.message.Message(id=message.id)
    response.flags = dns.flags.QR
    response.set_opcode(message.opcode())
    response.set_rcode(rcode)
    return response


@dataclass
class SentUpdate:
    """An update message as seen by the stub server."""

    message: dns.message.Message
    keyname: str | None
    keyalgorithm: str | None
    wire: bytes


class StubTransport:
    """Answers SOA queries for one zone and acknowledges every update."""

    address = "192.0.2.53:53"

    def __init__(self, zone: str = "example.com.", update_rcode: int = dns.rcode.NOERROR, query_failures: int = 0):
        self.zone = zone
        self.update_rcode = update_rcode
        self.query_failures = query_failures
        self.queries: list[dns.message.Message] = []
        self.updates: list[SentUpdate] = []

    def exchange(self, message: dns.message.Message) -> dns.message.Message:
        if message.opcode() == dns.opcode.UPDATE:
            # rendering signs the message, as a real send would
            wire = message.to_wire()
            self.updates.append(
                SentUpdate(
                    message=message,
                    keyname=message.keyname.to_text() if message.keyname else None,
                    keyalgorithm=message.keyalgorithm.to_text() if message.keyalgorithm else None,
                    wire=wire,
                )
            )
            return reply(message, self.update_rcode)
        self.queries.append(message)
        if len(self.queries) <= self.query_failures:
            raise TransportError(f"Error processing records via {self.address}: timed out")
        response = reply(message)
        response.authority.append(dns.rrset.from_text(self.zone, 3600, "IN", "SOA", SOA_TEXT))
        return response


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()
