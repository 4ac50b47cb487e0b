"""telemlink telemetry viewer: DearPyGui-based live monitor."""

from __future__ import annotations

import argparse
import sys


def launch() -> None:
    """Entry point for ``telemlink-viewer`` console script."""
    parser = argparse.ArgumentParser(
        prog="telemlink-viewer",
        description="telemlink telemetry viewer",
    )
    parser.add_argument("--host", default="localhost",
                        help="Bridge host (port 8081, path /ws)")
    parser.add_argument("--secure", action="store_true",
                        help="Use wss:// instead of ws://")
    parser.add_argument("--connect", action="store_true",
                        help="Connect immediately on startup")
    args = parser.parse_args()

    try:
        import dearpygui.dearpygui  # noqa: F401
    except ImportError:
        print("Error: dearpygui is required for the viewer.\n"
              "Install with: pip install 'telemlink[viewer]'",
              file=sys.stderr)
        sys.exit(1)

    from .app import ViewerApp

    app = ViewerApp(args.host, args.secure)
    app.setup()

    if args.connect:
        app.connect()

    app.run()
