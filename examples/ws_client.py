#!/usr/bin/env python3
"""Connect to a bridge and print each structured reading's pressure.

Run the example source first:
    python examples/ws_source.py

Then in another terminal:
    python examples/ws_client.py
"""

import asyncio

from telemlink.decoder import StructuredReading
from telemlink.session import SessionManager


class PressurePrinter:
    def on_connected(self, message):
        print(message)

    def on_disconnected(self, message, reason):
        print(f"{message} ({reason.value})")

    def on_error(self, message):
        print(f"error: {message}")

    def on_record(self, record):
        if isinstance(record, StructuredReading):
            print(f"{record.timestamp}  P={record.fields.p}")


async def main():
    session = SessionManager(PressurePrinter(), host="localhost")
    session.start()
    try:
        await session.wait_stopped()
    finally:
        if not session.done:
            session.stop()


try:
    asyncio.run(main())
except KeyboardInterrupt:
    pass
