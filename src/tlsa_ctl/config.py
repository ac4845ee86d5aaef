"""Environment-driven configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .models import ConfigError

DEFAULT_NAME_SERVER = "127.0.0.1:53"


class TlsaParameters(BaseModel, frozen=True):
    """RFC 6698 parameters applied to every record in a run."""

    usage: int = Field(default=3, ge=0, le=3, description="Certificate usage (RFC 6698 2.1.1)")
    selector: int = Field(default=1, ge=0, le=1, description="Selector (RFC 6698 2.1.2)")
    matching_type: int = Field(default=2, ge=0, le=2, description="Matching type (RFC 6698 2.1.3)")


@dataclass(frozen=True)
class AppConfig:
    """Application-wide configuration values."""

    server: str
    port: int
    tsig_file: Path
    tlsa: TlsaParameters
    ttl: int
    tsig_fudge: int
    udp_payload: int
    log_level: str


def parse_name_server(value: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6addr]:port``) into its parts."""
    text = value.strip()
    if not text:
        raise ConfigError("Name server address is empty.")
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep:
            raise ConfigError(f"Invalid name server address '{value}'.")
        port_text = rest[1:] if rest.startswith(":") else ""
    elif text.count(":") == 1:
        host, port_text = text.split(":", 1)
    else:
        # bare hostname, IPv4 or unbracketed IPv6 address
        host, port_text = text, ""
    if not port_text:
        return host, 53
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigError(f"Invalid port in name server address '{value}'.") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range in name server address '{value}'.")
    return host, port


def _parse_int(name: str, value: Any, minimum: int = 0, maximum: int | None = None) -> int:
    """Return an integer setting, raising ConfigError on bad input."""
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got '{value}'.") from exc
    if number < minimum or (maximum is not None and number > maximum):
        raise ConfigError(f"{name} is out of range: {number}.")
    return number


def _pick(override: Any, env_name: str, default: str) -> Any:
    """Prefer an explicit override, then the environment, then the default."""
    if override is not None:
        return override
    return os.getenv(env_name, default)


def load_config(
    ns: str | None = None,
    tsig_file: str | None = None,
    usage: int | None = None,
    selector: int | None = None,
    matching_type: int | None = None,
    ttl: int | None = None,
    tsig_fudge: int | None = None,
    udp_payload: int | None = None,
    log_level: str | None = None,
) -> AppConfig:
    """Load configuration values from the environment (and .env).

    Keyword arguments come from the command line and win over the environment.
    """
    load_dotenv()
    server, port = parse_name_server(_pick(ns, "TLSA_NS", DEFAULT_NAME_SERVER))
    try:
        tlsa = TlsaParameters(
            usage=_parse_int("TLSA usage", _pick(usage, "TLSA_USAGE", "3")),
            selector=_parse_int("TLSA selector", _pick(selector, "TLSA_SELECTOR", "1")),
            matching_type=_parse_int("TLSA matching type", _pick(matching_type, "TLSA_MATCH", "2")),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid TLSA parameters: {exc}") from exc

    return AppConfig(
        server=server,
        port=port,
        tsig_file=Path(_pick(tsig_file, "TLSA_TSIG_FILE", "tsig.key")),
        tlsa=tlsa,
        ttl=_parse_int("TTL", _pick(ttl, "TLSA_TTL", "0"), maximum=2**31 - 1),
        tsig_fudge=_parse_int("TSIG fudge", _pick(tsig_fudge, "TLSA_TSIG_FUDGE", "300"), maximum=65535),
        udp_payload=_parse_int("UDP payload", _pick(udp_payload, "TLSA_UDP_PAYLOAD", "4096"), 512, 65535),
        log_level=_pick(log_level, "LOG_LEVEL", "INFO"),
    )
