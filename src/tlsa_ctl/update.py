"""Compose, sign and send TLSA dynamic updates."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import dns.entropy
import dns.name
import dns.opcode
import dns.rcode
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.tsig
import dns.update

from .config import AppConfig, TlsaParameters
from .models import (
    PlannedUpdate,
    TlsaRecord,
    TsigKey,
    UnsupportedAlgorithmError,
    UpdateRejectedError,
    ZoneResolutionError,
)
from .zone import Transport, find_zone

LOG = logging.getLogger("tlsa_ctl")

# KEY record algorithm numbers as used by dnssec-keygen for HMAC keys.
HMAC_ALGORITHMS: dict[int, dns.name.Name] = {
    157: dns.tsig.HMAC_MD5,
    161: dns.tsig.HMAC_SHA1,
    163: dns.tsig.HMAC_SHA256,
    165: dns.tsig.HMAC_SHA512,
}


def tsig_algorithm(key: TsigKey) -> dns.name.Name:
    """Return the TSIG algorithm name for a key, never falling back to a default."""
    try:
        return HMAC_ALGORITHMS[key.algorithm]
    except KeyError:
        raise UnsupportedAlgorithmError(f"Unknown HMAC algorithm {key.algorithm} in TSIG key {key.name}") from None


def tlsa_records(owner: str, params: TlsaParameters, associations: Iterable[str]) -> list[TlsaRecord]:
    """Return one TLSA record per association string."""
    return [
        TlsaRecord(
            owner=owner,
            usage=params.usage,
            selector=params.selector,
            matching_type=params.matching_type,
            association=association,
        )
        for association in associations
    ]


def _owner_in_zone(domain: str, zone: str) -> dns.name.Name:
    """Return the absolute owner name, checking that it belongs to ``zone``."""
    owner = dns.name.from_text(domain)
    if not owner.is_subdomain(dns.name.from_text(zone)):
        raise ZoneResolutionError(f"{owner} is not inside zone {zone}")
    return owner


def build_clear_update(zone: str, domain: str) -> dns.update.UpdateMessage:
    """Compose an update deleting every TLSA record at ``domain``."""
    owner = _owner_in_zone(domain, zone)
    update = dns.update.UpdateMessage(zone)
    update.delete(owner, dns.rdatatype.TLSA)
    return update


def build_publish_update(zone: str, records: Sequence[TlsaRecord], ttl: int = 0) -> dns.update.UpdateMessage:
    """Compose an update inserting ``records`` as one TLSA RRset."""
    update = dns.update.UpdateMessage(zone)
    for record in records:
        owner = _owner_in_zone(record.owner, zone)
        rdata = dns.rdata.from_text(dns.rdataclass.IN, dns.rdatatype.TLSA, record.rdata_text())
        update.add(owner, ttl, rdata)
    return update


class TlsaUpdater:
    """Sends clear and publish updates for a list of domains.

    Domains are handled one at a time. A failure stops the run and nothing
    already sent is rolled back.
    """

    def __init__(
        self,
        config: AppConfig,
        keys: Sequence[TsigKey],
        transport: Transport,
        dry_run: bool = False,
    ):
        self.config = config
        self.keys = list(keys)
        self.transport = transport
        self.dry_run = dry_run

    def check_keys(self) -> None:
        """Fail early if any key uses an unsupported algorithm."""
        for key in self.keys:
            tsig_algorithm(key)

    def clear(self, names: Iterable[str]) -> list[PlannedUpdate]:
        """Remove the whole TLSA RRset of every domain."""
        planned = []
        for domain in names:
            zone = self._zone_for(domain)
            update = build_clear_update(zone, domain)
            planned.append(PlannedUpdate(action="clear", zone=zone, owner=dns.name.from_text(domain).to_text()))
            self._dispatch(update, f"clear TLSA RRs for {domain}")
        return planned

    def publish(self, names: Iterable[str], associations: Sequence[str]) -> list[PlannedUpdate]:
        """Add one TLSA record per association to every domain."""
        planned = []
        for domain in names:
            zone = self._zone_for(domain)
            owner = dns.name.from_text(domain).to_text()
            records = tlsa_records(owner, self.config.tlsa, associations)
            update = build_publish_update(zone, records, ttl=self.config.ttl)
            planned.append(PlannedUpdate(action="publish", zone=zone, owner=owner, records=records))
            self._dispatch(update, f"add {len(records)} TLSA RR(s) for {domain}")
        return planned

    def sign_and_send(self, update: dns.update.UpdateMessage) -> None:
        """Sign the update with each key in turn and send one copy per key."""
        if update.id == 0:
            update.id = dns.entropy.random_16()
        for key in self.keys:
            algorithm = tsig_algorithm(key)
            update.use_tsig(dns.tsig.Key(key.name, key.secret, algorithm), fudge=self.config.tsig_fudge)
            try:
                response = self.transport.exchange(update)
            except dns.tsig.PeerError as exc:
                raise UpdateRejectedError(
                    f"Update signed with TSIG key {key.name} was rejected by {self.transport.address}: {exc}"
                ) from exc
            if response.opcode() != dns.opcode.UPDATE or response.rcode() != dns.rcode.NOERROR:
                raise UpdateRejectedError(
                    f"Update response from {self.transport.address} was unsuccessful "
                    f"(opcode={dns.opcode.to_text(response.opcode())}, rcode={dns.rcode.to_text(response.rcode())})"
                )
            LOG.debug("Update %d accepted by %s (key %s)", update.id, self.transport.address, key.name)

    def _zone_for(self, domain: str) -> str:
        """Resolve the zone apex for one domain."""
        return find_zone(domain, self.transport, payload=self.config.udp_payload)

    def _dispatch(self, update: dns.update.UpdateMessage, description: str) -> None:
        """Send the update unless running dry."""
        if self.dry_run:
            LOG.debug("dry-run: would %s", description)
            return
        if not self.keys:
            LOG.warning("No TSIG keys loaded; not sending update (%s)", description)
            return
        LOG.info("Sending update (%s) via %s", description, self.transport.address)
        self.sign_and_send(update)
