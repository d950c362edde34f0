#!/usr/bin/env python3
"""
CLI for device SAS tokens.

Commands:
  python -m cli.token_cli --generate [--minutes N]     # Issue a token from IOT_CONFIG_* settings
  python -m cli.token_cli --inspect TOKEN              # Show a token's expiry and whether it lapsed

Hub, device and key may also be given as --hub/--device/--key.
"""

from __future__ import annotations

import argparse
import os
import sys
import time

from sas_core.clock import SystemClock, clock_is_synchronized
from sas_core.config import SAS_TOKEN_DURATION_IN_MINUTES, IoTSettings
from sas_core.errors import ClockError, SasTokenError
from sas_core.expiry import parse_expiry
from sas_core.hub import create_sas_token
from sas_core.logger import DEFAULT_LEVEL, LOG_PATH, DiagnosticSink, LogLevel, build_logger


def _fmt_ts(ts: int) -> str:
    return time.strftime("%Y/%m/%d %H:%M:%S UTC", time.gmtime(ts))


def _settings_from_args(args: argparse.Namespace) -> IoTSettings:
    env = {
        "IOT_CONFIG_IOTHUB_FQDN": args.hub,
        "IOT_CONFIG_DEVICE_ID": args.device,
        "IOT_CONFIG_DEVICE_KEY": args.key,
        "IOT_CONFIG_MODULE_ID": args.module,
        "IOT_CONFIG_KEY_NAME": args.key_name,
    }
    merged = {k: v for k, v in os.environ.items() if k.startswith(("IOT_CONFIG_", "SAS_TOKEN_"))}
    merged.update({k: v for k, v in env.items() if v})
    return IoTSettings.from_env(merged)


def cmd_generate(args: argparse.Namespace, sink: DiagnosticSink) -> int:
    """Issue a token and print it on stdout."""
    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        print(f"[!] Error: {exc}", file=sys.stderr)
        return 1

    clock = SystemClock()
    try:
        now = clock.now()
    except ClockError as exc:
        print(f"[!] Error: {exc}", file=sys.stderr)
        return 1
    if not clock_is_synchronized(now):
        print("[!] Warning: system clock looks unsynchronized; the token expiry will be wrong", file=sys.stderr)

    minutes = args.minutes if args.minutes is not None else settings.token_minutes
    sas = create_sas_token(settings, clock=clock, sink=sink)
    if not sas.generate(minutes):
        print("[!] Error: failed generating SAS token (see log)", file=sys.stderr)
        return 1

    sink.event("SAS token issued for %s", settings.device_id)
    print(sas.get().decode())
    print(f"[+] Expires at {_fmt_ts(sas.expiry)} ({sas.expiry})", file=sys.stderr)
    return 0


def cmd_inspect(args: argparse.Namespace, sink: DiagnosticSink) -> int:
    """Parse the `se` field of an existing token."""
    try:
        expiry = parse_expiry(args.inspect)
    except SasTokenError as exc:
        sink.error("Token inspection failed: %s", exc)
        print(f"[!] Error: {exc}", file=sys.stderr)
        return 1

    try:
        now = SystemClock().now()
    except ClockError as exc:
        sink.error("Token inspection failed: %s", exc)
        print(f"[!] Error: {exc}", file=sys.stderr)
        return 1
    state = "EXPIRED" if now >= expiry else f"valid for {expiry - now}s"
    print(f"se={expiry} ({_fmt_ts(expiry)}) {state}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the token CLI."""
    parser = argparse.ArgumentParser(
        prog="sas-token",
        description="Issue and inspect IoT Hub SAS tokens",
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--generate",
        action="store_true",
        help="Issue a new token",
    )
    group.add_argument(
        "--inspect",
        type=str,
        metavar="TOKEN",
        help="Show the expiry carried by TOKEN",
    )

    parser.add_argument("--hub", metavar="FQDN", help="IoT Hub host name (env IOT_CONFIG_IOTHUB_FQDN)")
    parser.add_argument("--device", metavar="ID", help="Device id (env IOT_CONFIG_DEVICE_ID)")
    parser.add_argument("--key", metavar="B64", help="Base64 device key (env IOT_CONFIG_DEVICE_KEY)")
    parser.add_argument("--module", metavar="ID", help="Module id (env IOT_CONFIG_MODULE_ID)")
    parser.add_argument("--key-name", metavar="NAME", help="Shared access policy name (adds skn=)")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        metavar="N",
        help=f"Token lifetime in minutes (default: {SAS_TOKEN_DURATION_IN_MINUTES})",
    )
    parser.add_argument(
        "--log-level",
        choices=[lvl.name for lvl in LogLevel],
        default=DEFAULT_LEVEL.name,
        help="Diagnostic verbosity (default: %(default)s)",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help=f"Do not write {LOG_PATH}",
    )

    args = parser.parse_args(argv)
    if args.minutes is not None and args.minutes < 0:
        parser.error("--minutes must be >= 0")

    level = LogLevel[args.log_level]
    base = build_logger("sas_core", level, log_path=None if args.no_log_file else LOG_PATH)
    sink = DiagnosticSink(base, level)

    try:
        if args.generate:
            return cmd_generate(args, sink)
        return cmd_inspect(args, sink)
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
