"""Core data models used by tlsa-ctl."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Certificate:
    """A loaded certificate or bare public key.

    ``der`` is ``None`` when the value came from a ``PUBLIC KEY`` block; such
    values only support selector 1 digests and carry no names.
    """

    spki: bytes
    der: bytes | None = None
    common_name: str | None = None
    dns_names: tuple[str, ...] = ()

    def has_certificate(self) -> bool:
        """Return True when the full certificate DER is available."""
        return self.der is not None


@dataclass(frozen=True)
class TsigKey:
    """Holds a TSIG key read from a KEY record."""

    name: str
    algorithm: int
    secret: str


@dataclass(frozen=True)
class TlsaRecord:
    """A single TLSA record destined for one update message."""

    owner: str
    usage: int
    selector: int
    matching_type: int
    association: str

    def rdata_text(self) -> str:
        """Return the record data in presentation format."""
        return f"{self.usage} {self.selector} {self.matching_type} {self.association}"


@dataclass
class PlannedUpdate:
    """Describes one update message sent (or, in dry-run, composed)."""

    action: str
    zone: str
    owner: str
    records: list[TlsaRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Return a serialisable representation."""
        return {
            "action": self.action,
            "zone": self.zone,
            "owner": self.owner,
            "records": [record.rdata_text() for record in self.records],
        }


class TlsaCtlError(Exception):
    """Base exception for tlsa-ctl."""


class ConfigError(TlsaCtlError):
    """Raised when configuration values are invalid."""


class FileAccessError(TlsaCtlError):
    """Raised when an input file cannot be read."""


class CertificateError(TlsaCtlError):
    """Base class for certificate loading failures."""


class DecodeError(CertificateError):
    """Raised when no usable PEM block is found."""


class ParseError(CertificateError):
    """Raised when the DER payload of a PEM block is malformed."""


class UnsupportedTypeError(CertificateError):
    """Raised for PEM blocks other than CERTIFICATE or PUBLIC KEY."""


class KeyFileError(TlsaCtlError):
    """Base class for TSIG key file failures."""


class UnexpectedRecordError(KeyFileError):
    """Raised when a key file holds something other than IN KEY records."""


class KeyFileSyntaxError(KeyFileError):
    """Raised when a key file record cannot be parsed."""


class DigestError(TlsaCtlError):
    """Base class for association data failures."""


class UnsupportedParameterError(DigestError):
    """Raised for selector or matching type values outside RFC 6698."""


class MissingDataError(DigestError):
    """Raised when selector 0 is requested for a bare public key."""


class ZoneResolutionError(TlsaCtlError):
    """Raised when the zone apex for a name cannot be determined."""


class UpdateError(TlsaCtlError):
    """Base class for failures while sending updates."""


class UnsupportedAlgorithmError(UpdateError):
    """Raised when a TSIG key uses an HMAC algorithm we cannot sign with."""


class TransportError(UpdateError):
    """Raised when the UDP exchange with the name server fails."""


class UpdateRejectedError(UpdateError):
    """Raised when the server does not acknowledge an update."""
