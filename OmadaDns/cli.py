from __future__ import annotations

import argparse
import logging
import os
import sys

import dns.message
import dns.rdatatype

from .settings import OmadaSettings
from .api import OmadaClientApi
from .sync import OmadaSync
from .utils import parse_duration, str_to_bool, normalize_fqdn
from .errors import ApiError, SettingsError
from .formatters import print_zone_records, print_reverse, print_response, print_snapshot_summary


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Serve DNS records for Omada controller clients, devices and DHCP reservations")

    p.add_argument("--url", help="Controller URL (env: OMADA_URL)")
    p.add_argument("--site", help="Site name regular expression (env: OMADA_SITE)")
    p.add_argument("--username", help="Controller username (env: OMADA_USERNAME)")
    p.add_argument("--password", help="Controller password (env: OMADA_PASSWORD)")
    p.add_argument("--insecure", action="store_true", help="Disable TLS certificate verification")
    p.add_argument("--refresh-minutes", type=int, help="Zone refresh interval (env: OMADA_REFRESH_MINUTES)")
    p.add_argument("--refresh-login-hours", type=int, help="Session refresh interval (env: OMADA_REFRESH_LOGIN_HOURS)")
    p.add_argument("--resolve-clients", type=str_to_bool)
    p.add_argument("--resolve-devices", type=str_to_bool)
    p.add_argument("--resolve-dhcp-reservations", type=str_to_bool)
    p.add_argument("--stale-record-duration", type=_duration, help="e.g. 10m (env: OMADA_STALE_RECORD_DURATION)")
    p.add_argument("--ignore-startup-errors", nargs="?", const=True, default=None, type=str_to_bool)
    p.add_argument("--fallback", help="IP, FQDN or hostname answering unmatched names (env: OMADA_FALLBACK)")
    p.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Logging level (env: LOG_LEVEL)")
    p.add_argument("--debug", action="store_true", help="Enable verbose HTTP debugging")

    sp = p.add_subparsers(dest="command", required=True)

    # records
    p_rec = sp.add_parser("records", help="Refresh once and list forward and reverse records")
    p_rec.add_argument("--zone", help="Only show forward records of this zone (e.g. omada.home)")
    p_rec.add_argument("--no-reverse", action="store_true", help="Skip the reverse record table")

    # lookup
    p_look = sp.add_parser("lookup", help="Refresh once and answer a query")
    p_look.add_argument("name", help="Query name")
    p_look.add_argument("--type", "-t", default="A", choices=["A", "PTR", "SOA"])

    # run
    sp.add_parser("run", help="Keep zones refreshed until interrupted")

    return p


def settings_from_args(args: argparse.Namespace) -> OmadaSettings:
    return OmadaSettings.from_env().with_overrides(
        controller_url=args.url,
        site=args.site,
        username=args.username,
        password=args.password,
        verify_tls=(False if args.insecure else None),
        refresh_minutes=args.refresh_minutes,
        refresh_login_hours=args.refresh_login_hours,
        resolve_clients=args.resolve_clients,
        resolve_devices=args.resolve_devices,
        resolve_dhcp_reservations=args.resolve_dhcp_reservations,
        stale_record_duration=args.stale_record_duration,
        ignore_startup_errors=args.ignore_startup_errors,
        fallback=args.fallback,
    ).validate()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = settings_from_args(args)
    except SettingsError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        with OmadaClientApi(settings, debug=args.debug) as api:
            sync = OmadaSync(settings, api)

            if args.command == "records":
                sync.init_controller(login=False)
                snapshot = sync.update_zones()
                print_snapshot_summary(snapshot)
                zone = normalize_fqdn(args.zone) if args.zone else None
                print_zone_records(snapshot, zone=zone)
                if not args.no_reverse and not zone:
                    print()
                    print_reverse(snapshot)
                return 0

            if args.command == "lookup":
                sync.init_controller(login=False)
                sync.update_zones()
                query = dns.message.make_query(normalize_fqdn(args.name), dns.rdatatype.from_text(args.type))
                response = sync.resolver.handle(query)
                print_response(response)
                return 0

            if args.command == "run":
                sync.start(login=False)
                try:
                    sync.wait()
                except KeyboardInterrupt:
                    print("Stopping...", file=sys.stderr)
                finally:
                    sync.stop(timeout=5.0)
                return 0

        return 0

    except ApiError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
