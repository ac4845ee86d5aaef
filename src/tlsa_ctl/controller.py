"""High-level orchestration for tlsa-ctl."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .certs import names_from_files
from .config import AppConfig
from .dane import certificate_associations
from .keyfile import read_tsig_keys
from .models import ConfigError, PlannedUpdate, TsigKey
from .transport import UdpTransport
from .update import TlsaUpdater
from .zone import Transport

LOG = logging.getLogger("tlsa_ctl")


@dataclass
class RunRequest:
    """What the operator asked for on one invocation."""

    names: list[str] = field(default_factory=list)
    pin_certs: list[str] = field(default_factory=list)
    clear_all: bool = False
    dry_run: bool = False
    names_from_certs: bool = False


@dataclass
class RunResult:
    """Holds everything a run did (or would have done)."""

    names: list[str]
    keys: list[TsigKey]
    associations: list[str]
    updates: list[PlannedUpdate]


class TlsaController:
    """Coordinates clear/publish operations."""

    def __init__(self, config: AppConfig, transport: Transport | None = None):
        """Store configuration for subsequent runs."""
        self.config = config
        self.transport = transport or UdpTransport.from_config(config)

    def target_names(self, request: RunRequest) -> list[str]:
        """Return the de-duplicated list of domains to work on."""
        names = list(request.names)
        if request.names_from_certs and request.pin_certs:
            names.extend(sorted(names_from_files(request.pin_certs)))
        unique = list(dict.fromkeys(name for name in names if name))
        if not unique:
            raise ConfigError("No pinned-names to work with. Use --names")
        return unique

    def run(self, request: RunRequest) -> RunResult:
        """Clear and/or publish TLSA records for every target domain.

        Clearing happens for all domains before anything is published. The
        first failure aborts the run; updates already accepted by the server
        stay in place.
        """
        keys = read_tsig_keys(self.config.tsig_file)
        names = self.target_names(request)
        associations = certificate_associations(request.pin_certs, self.config.tlsa) if request.pin_certs else []

        updater = TlsaUpdater(self.config, keys, self.transport, dry_run=request.dry_run)
        if request.dry_run:
            updater.check_keys()

        updates: list[PlannedUpdate] = []
        if request.clear_all:
            updates.extend(updater.clear(names))
        if associations:
            updates.extend(updater.publish(names, associations))
        if not updates:
            LOG.info("Nothing to do: neither --clear-all nor --pin-certs given.")

        LOG.info(
            "%s %d update(s) for %d name(s) with %d key(s)",
            "Planned" if request.dry_run else "Sent",
            len(updates),
            len(names),
            len(keys),
        )
        return RunResult(names=names, keys=keys, associations=associations, updates=updates)


def configure_logging(level: str) -> None:
    """Configure logging output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
