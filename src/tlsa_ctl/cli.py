"""Command-line entry point for tlsa-ctl."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .controller import RunRequest, RunResult, TlsaController, configure_logging
from .exporter import plan_to_json, plan_to_yaml, write_report
from .models import TlsaCtlError
from .renderer import render_plan


def _build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(
        description="Publish TLSA records derived from X.509 certificates via TSIG-signed dynamic updates."
    )
    parser.add_argument("--names", help="Names to pin the certificates to (comma separated).")
    parser.add_argument("--pin-certs", help="X.509 certificate or public key files to pin via TLSA (comma separated).")
    parser.add_argument(
        "--names-from-certs",
        action="store_true",
        help="Also pin every CN and DNS SAN found in the pinned certificates.",
    )
    parser.add_argument("--tsig-file", help="TSIG key file (default tsig.key).")
    parser.add_argument("--clear-all", action="store_true", help="Clear all existing TLSA records first.")
    parser.add_argument("--ns", help="Authoritative name server to send updates to (default 127.0.0.1:53).")
    parser.add_argument("--tlsa-usage", type=int, help="TLSA usage code, see RFC 6698 2.1.1 (default 3).")
    parser.add_argument("--tlsa-selector", type=int, help="TLSA selector code, see RFC 6698 2.1.2 (default 1).")
    parser.add_argument("--tlsa-match", type=int, help="TLSA matching type code, see RFC 6698 2.1.3 (default 2).")
    parser.add_argument("--ttl", type=int, help="TTL of published TLSA records (default 0).")
    parser.add_argument("--tsig-fudge", type=int, help="TSIG fudge window in seconds (default 300).")
    parser.add_argument("--udp-payload", type=int, help="EDNS(0) UDP payload size for SOA queries (default 4096).")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Output information about what would be done but make no changes.",
    )
    parser.add_argument(
        "--format",
        choices=["text", "yaml", "json"],
        default="text",
        help="Format of the dry-run report.",
    )
    parser.add_argument("--output", help="Path to write the dry-run report (default stdout).")
    parser.add_argument("--log-level", help="Override log level (default from config).")
    return parser


def _split_list(value: str | None) -> list[str]:
    """Split a comma separated option into its non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _emit_report(result: RunResult, ttl: int, fmt: str, output: str | None) -> None:
    """Print or write the dry-run report."""
    if fmt == "json":
        content = plan_to_json(result.updates, result.keys, ttl)
    elif fmt == "yaml":
        content = plan_to_yaml(result.updates, result.keys, ttl)
    else:
        content = render_plan(result.updates, result.keys, ttl)
    if output:
        write_report(Path(output), content)
        print(f"Wrote dry-run report to {output}")
    else:
        print(content, end="" if content.endswith("\n") else "\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(
            ns=args.ns,
            tsig_file=args.tsig_file,
            usage=args.tlsa_usage,
            selector=args.tlsa_selector,
            matching_type=args.tlsa_match,
            ttl=args.ttl,
            tsig_fudge=args.tsig_fudge,
            udp_payload=args.udp_payload,
            log_level=args.log_level,
        )
        configure_logging(config.log_level)
        controller = TlsaController(config)
        request = RunRequest(
            names=_split_list(args.names),
            pin_certs=_split_list(args.pin_certs),
            clear_all=args.clear_all,
            dry_run=args.dry_run,
            names_from_certs=args.names_from_certs,
        )
        result = controller.run(request)
        if args.dry_run:
            _emit_report(result, config.ttl, args.format, args.output)
    except TlsaCtlError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:  # noqa: BLE001
        print(f"Unexpected error: {exc}", file=sys.stderr)
        sys.exit(3)


if __name__ == "__main__":
    main()
