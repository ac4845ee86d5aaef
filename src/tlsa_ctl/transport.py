"""UDP exchange with the configured name server."""

from __future__ import annotations

import socket

import dns.exception
import dns.inet
import dns.message
import dns.query
import dns.tsig

from .config import AppConfig
from .models import TransportError

# Matches the default client timeout of the tools this replaces.
DEFAULT_TIMEOUT = 2.0


class UdpTransport:
    """Sends one message and waits for the reply."""

    def __init__(self, server: str, port: int = 53, timeout: float = DEFAULT_TIMEOUT):
        self.server = server
        self.port = port
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: AppConfig) -> "UdpTransport":
        """Build a transport for the configured name server."""
        return cls(config.server, config.port)

    @property
    def address(self) -> str:
        """Return the server address for log and error messages."""
        if ":" in self.server:
            return f"[{self.server}]:{self.port}"
        return f"{self.server}:{self.port}"

    def _resolve(self) -> str:
        """Return the server as an IP address."""
        if dns.inet.is_address(self.server):
            return self.server
        try:
            infos = socket.getaddrinfo(self.server, self.port, type=socket.SOCK_DGRAM)
        except OSError as exc:
            raise TransportError(f"Cannot resolve name server {self.server}: {exc}") from exc
        return infos[0][4][0]

    def exchange(self, message: dns.message.Message) -> dns.message.Message:
        """Send ``message`` over UDP and return the parsed response."""
        where = self._resolve()
        try:
            return dns.query.udp(message, where, timeout=self.timeout, port=self.port)
        except dns.tsig.PeerError:
            # the server answered; the caller decides what a TSIG error means
            raise
        except (dns.exception.DNSException, OSError, ValueError) as exc:
            raise TransportError(f"Error processing records via {self.address}: {exc}") from exc
