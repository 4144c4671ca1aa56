"""Command-line entry point for the high-frequency ping tool."""

from __future__ import annotations

import argparse
import ipaddress
import logging
import socket
import sys
from collections.abc import Sequence

from .ping import IpAddress, PingSession

_DESCRIPTION = "High-frequency ping tool for network monitoring"
_EPILOG = (
    "A high-frequency ping tool that sends ICMP packets continuously and provides "
    "statistics based on packet count. Supports both IPv4 and IPv6 addresses."
)


def resolve_address(target: str) -> IpAddress:
    """Return ``target`` as an IP address, resolving host names (IPv4 preferred).

    Raises ValueError when the name resolves to no address and OSError when
    resolution itself fails.
    """
    try:
        return ipaddress.ip_address(target)
    except ValueError:
        pass

    infos = socket.getaddrinfo(target, 0)
    addresses = [ipaddress.ip_address(info[4][0]) for info in infos]
    if not addresses:
        raise ValueError(f"Unable to resolve address: {target}")
    return next((addr for addr in addresses if addr.version == 4), addresses[0])


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text!r}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dping", description=_DESCRIPTION, epilog=_EPILOG)
    parser.add_argument("target", help="Target address to ping (IP address or hostname)")
    parser.add_argument(
        "-p",
        "--packets",
        dest="packets_per_report",
        type=_non_negative_int,
        default=100,
        help="Number of packets per statistics report",
    )
    parser.add_argument(
        "-i",
        "--interval",
        dest="interval_ms",
        type=_non_negative_int,
        default=10,
        help="Interval between packets in milliseconds",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write ping statistics to file (max 10MB)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ping tool; return the process exit status."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        target_ip = resolve_address(args.target)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    family = "IPv6" if target_ip.version == 6 else "IPv4"
    print(
        f"PING {args.target} ({target_ip}): 间隔{args.interval_ms}ms发包，"
        f"每{args.packets_per_report}个包统计一次 [{family}]",
        flush=True,
    )

    try:
        session = PingSession(target_ip, args.packets_per_report, args.interval_ms, args.output)
    except OSError as exc:
        print(f"Error: Failed to open output file: {args.output}: {exc}", file=sys.stderr)
        return 1

    with session:
        session.write_startup_log(args.target)
        try:
            session.start()
        except OSError as exc:
            print(f"Ping session failed: {exc}", file=sys.stderr)
            message = str(exc)
            if sys.platform == "win32" and (
                isinstance(exc, PermissionError) or "permission" in message or "access" in message
            ):
                print(
                    "Error: Permission denied. Please run as Administrator on Windows.",
                    file=sys.stderr,
                )
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())