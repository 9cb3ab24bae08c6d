"""Command-line front end of the high-availability DNS client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass

from hadns.client import DNSClient
from hadns.config import (
    DEFAULT_BACKUP_DOMAINS,
    DEFAULT_HEALTH_CHECK_PORT,
    DEFAULT_PRIMARY_DOMAIN,
    Config,
    ResolutionError,
    default_config,
    load_config,
)

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_EPILOG = """Examples:
  %(prog)s --primary example.com --verbose
  %(prog)s --config config.json --output json
  %(prog)s --backup "backup1.com,backup2.com" --timeout 10
"""


@dataclass
class Result:
    """Outcome of one resolution run, as reported to the user."""

    success: bool
    ip: str = ""
    error: str = ""
    timestamp: int = 0
    method: str = ""


def _bool_flag(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the client command."""
    parser = argparse.ArgumentParser(
        description="High-Availability DNS Client",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-primary", "--primary", default=DEFAULT_PRIMARY_DOMAIN, help="Primary domain to resolve"
    )
    parser.add_argument(
        "-backup",
        "--backup",
        default=",".join(DEFAULT_BACKUP_DOMAINS),
        help="Backup domains (comma-separated)",
    )
    parser.add_argument("-timeout", "--timeout", type=int, default=5, help="Timeout in seconds")
    parser.add_argument(
        "-health-port",
        "--health-port",
        dest="health_port",
        type=int,
        default=DEFAULT_HEALTH_CHECK_PORT,
        help="Health check port",
    )
    parser.add_argument("-config", "--config", default="", help="Path to JSON config file")
    parser.add_argument(
        "-verbose",
        "--verbose",
        nargs="?",
        const=True,
        default=True,
        type=_bool_flag,
        help="Enable verbose logging",
    )
    parser.add_argument("-output", "--output", default="text", help="Output format: text, json")
    return parser


def create_config_from_args(args: argparse.Namespace) -> Config:
    """Build a Config from parsed command-line options and the built-in servers."""
    defaults = default_config()
    backups = [domain.strip() for domain in args.backup.split(",")]
    return Config(
        primary_domain=args.primary,
        backup_domains=[domain for domain in backups if domain],
        doh_servers=defaults.doh_servers,
        udp_dns_servers=defaults.udp_dns_servers,
        timeout=float(args.timeout) if args.timeout > 0 else None,
        health_check_port=args.health_port,
    )


def _result_dict(result: Result) -> dict[str, object]:
    data: dict[str, object] = {"success": result.success}
    if result.ip:
        data["ip"] = result.ip
    if result.error:
        data["error"] = result.error
    data["timestamp"] = result.timestamp
    if result.method:
        data["method"] = result.method
    return data


def format_result(result: Result, output_format: str) -> str:
    """Render a Result as indented JSON or as a one-line text message."""
    if output_format == "json":
        return json.dumps(_result_dict(result), indent=2, ensure_ascii=False)
    if result.success:
        return f"✅ Success: {result.ip}"
    return f"❌ Failed: {result.error}"


def _format_duration(seconds: float | None) -> str:
    if not seconds:
        return "0s"

    def trim(value: float, digits: int) -> str:
        return f"{value:.{digits}f}".rstrip("0").rstrip(".")

    if seconds < 1e-6:
        return f"{round(seconds * 1e9)}ns"
    if seconds < 1e-3:
        return f"{trim(seconds * 1e6, 3)}µs"
    if seconds < 1:
        return f"{trim(seconds * 1e3, 6)}ms"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    text = f"{trim(secs, 9)}s"
    if hours:
        return f"{int(hours)}h{int(minutes)}m{text}"
    if minutes:
        return f"{int(minutes)}m{text}"
    return text


def main(argv: Sequence[str] | None = None) -> int:
    """Run one high-availability resolution and report it; returns the exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
        stream=sys.stderr,
    )

    if args.config:
        try:
            config = load_config(args.config)
        except (OSError, ValueError) as exc:
            print(f"Error loading config file: {exc}", file=sys.stderr)
            return 1
        print(f"📄 Loaded configuration from: {args.config}")
    else:
        config = create_config_from_args(args)

    client = DNSClient(config)

    if args.verbose:
        print("🚀 High-Availability DNS Client")
        print(f"📋 Primary Domain: {config.primary_domain}")
        print(f"📋 Backup Domains: [{' '.join(config.backup_domains)}]")
        print(f"⏱️  Timeout: {_format_duration(config.timeout)}")
        print(f"🏥 Health Check Port: {config.health_check_port}")
        print(f"📊 DoH Servers: {len(config.doh_servers)} configured")
        print(f"📊 UDP DNS Servers: {len(config.udp_dns_servers)} configured")
        print("=" * 60)

    start = time.monotonic()
    try:
        final_ip = client.resolve_high_availability()
    except ResolutionError as exc:
        duration = time.monotonic() - start
        result = Result(success=False, error=str(exc), timestamp=int(time.time()))
        print(format_result(result, args.output))
        if args.verbose:
            print(f"⏱️  Total time: {_format_duration(duration)}")
        return 1
    duration = time.monotonic() - start

    result = Result(success=True, ip=final_ip, timestamp=int(time.time()))
    print(format_result(result, args.output))
    if args.verbose:
        print(f"⏱️  Total time: {_format_duration(duration)}")
        print(f"🔗 Server ready at: {final_ip}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())