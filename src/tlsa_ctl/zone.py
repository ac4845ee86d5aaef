"""Find the zone apex that owns a name."""

from __future__ import annotations

import logging
from typing import Protocol

import dns.exception
import dns.message
import dns.name
import dns.rdataclass
import dns.rdatatype

from .models import TransportError, ZoneResolutionError

LOG = logging.getLogger("tlsa_ctl")

ZONE_ATTEMPTS = 5
DEFAULT_PAYLOAD = 4096


class Transport(Protocol):
    """Anything able to perform one DNS exchange."""

    address: str

    def exchange(self, message: dns.message.Message) -> dns.message.Message:
        ...


def _soa_owner(response: dns.message.Message) -> dns.name.Name | None:
    """Return the owner of the first IN SOA rrset in authority, then answer."""
    for rrset in [*response.authority, *response.answer]:
        if rrset.rdclass == dns.rdataclass.IN and rrset.rdtype == dns.rdatatype.SOA:
            return rrset.name
    return None


def find_zone(
    name: str,
    transport: Transport,
    payload: int = DEFAULT_PAYLOAD,
    attempts: int = ZONE_ATTEMPTS,
) -> str:
    """Return the apex of the zone holding ``name``.

    The SOA query goes to the configured server, which must be authoritative
    for the name. Transport failures are retried with a fresh query id; a
    reply without any SOA record is not.
    """
    try:
        qname = dns.name.from_text(name)
    except dns.exception.DNSException as exc:
        raise ZoneResolutionError(f"Invalid domain name '{name}': {exc}") from exc
    for attempt in range(1, attempts + 1):
        query = dns.message.make_query(qname, dns.rdatatype.SOA, use_edns=0, payload=payload, want_dnssec=True)
        try:
            response = transport.exchange(query)
        except TransportError as exc:
            LOG.warning(
                "SOA query for %s via %s failed (attempt %d/%d): %s",
                qname,
                transport.address,
                attempt,
                attempts,
                exc,
            )
            continue

        apex = _soa_owner(response)
        if apex is None:
            raise ZoneResolutionError(f"SOA response for {qname} from {transport.address} had no usable SOA record")
        LOG.debug("Zone for %s is %s", qname, apex)
        return apex.to_text()

    raise ZoneResolutionError(f"Too many unsuccessful attempts to get SOA for {qname} via {transport.address}")
