"""telemlink command-line tool."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .decoder import (
    ClassifiedRecord,
    FallbackReading,
    Informational,
    StructuredReading,
    decode,
)
from .session import CloseReason, SessionManager, SessionState

logger = logging.getLogger(__name__)


def format_record(record: ClassifiedRecord) -> str:
    if isinstance(record, StructuredReading):
        values = ", ".join(f"{tag}: {value}"
                           for tag, value in record.fields.items())
        return f"{record.raw_timestamp} - DateTime: {record.timestamp}, {values}"
    if isinstance(record, FallbackReading):
        return record.text
    if isinstance(record, Informational):
        return record.text
    raise TypeError(f"not a decoded record: {record!r}")


class _ConsoleListener:
    """Records to stdout, session status to stderr."""

    def on_connected(self, message: str) -> None:
        print(f"[connected] {message}", file=sys.stderr)

    def on_disconnected(self, message: str, reason: CloseReason) -> None:
        print(f"[disconnected] {message} ({reason.value})", file=sys.stderr)

    def on_error(self, message: str) -> None:
        print(f"[error] {message}", file=sys.stderr)

    def on_record(self, record: ClassifiedRecord) -> None:
        print(format_record(record), flush=True)


def cmd_decode(args: argparse.Namespace) -> None:
    """Decode a captured bridge stream from a text file."""
    try:
        with open(args.file, encoding="utf-8", errors="replace") as f:
            for line in f:
                for record in decode(line):
                    print(format_record(record))
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


async def _run_live(manager: SessionManager) -> None:
    manager.start()
    try:
        await manager.wait_stopped()
    finally:
        if not manager.done:
            manager.stop()


def cmd_live(args: argparse.Namespace) -> None:
    """Connect to the bridge and print records until interrupted."""
    manager = SessionManager(_ConsoleListener(), host=args.host,
                             secure=args.secure)
    logger.info("endpoint %s", manager.url)
    try:
        asyncio.run(_run_live(manager))
    except KeyboardInterrupt:
        pass

    if manager.state is SessionState.FAILED:
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(prog="telemlink",
                                     description="telemlink telemetry client")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # live
    p_live = sub.add_parser("live", help="Stream records from the bridge")
    p_live.add_argument("--host", default="localhost",
                        help="Bridge host (port 8081, path /ws)")
    p_live.add_argument("--secure", action="store_true",
                        help="Use wss:// instead of ws://")

    # decode
    p_decode = sub.add_parser("decode", help="Decode a captured text stream")
    p_decode.add_argument("file", help="Path to a captured stream")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s: %(message)s")

    if args.command == "live":
        cmd_live(args)
    elif args.command == "decode":
        cmd_decode(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
