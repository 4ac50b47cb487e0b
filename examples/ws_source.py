#!/usr/bin/env python3
"""Serve synthetic bridge lines over WebSocket for client testing.

Listens on ws://0.0.0.0:8081/ws and sends one timestamped reading per
second, with the occasional informational and malformed line mixed in,
the way the serial bridge forwards a sensor board's output.

Usage:
    python examples/ws_source.py

Then in another terminal:
    telemlink live --host localhost
"""

import asyncio
import math
import random
import time

from websockets.asyncio.server import serve

WELCOME = "Connected to COM3. Waiting for data..."


def make_line(t: float, seq: int) -> str:
    """Generate one bridge line at time t (seconds)."""
    stamp = time.strftime("%Y%m%d%H%M%S")

    # One board reset per minute
    if seq % 60 == 59:
        return "All sensors initialized successfully\n"
    # ...and a sensor read error now and then
    if seq % 17 == 16:
        return f"{stamp}\tError reading MS5837!\n"

    pressure = 101.3 + 2.0 * math.sin(2 * math.pi * t / 30.0) + random.gauss(0, 0.05)
    t1 = 22.0 + 1.5 * math.sin(2 * math.pi * t / 20.0) + random.gauss(0, 0.1)
    depth = 12.0 + 3.0 * math.sin(2 * math.pi * t / 45.0)
    alt = 5.0 - 0.5 * math.sin(2 * math.pi * t / 45.0)
    t2 = t1 - 0.5 + random.gauss(0, 0.1)
    return (f"{stamp}\tP:{pressure:.2f} T1:{t1:.2f} Depth:{depth:.2f} "
            f"Alt:{alt:.2f} T2:{t2:.2f}\n")


async def stream(ws, rate_hz: float = 1.0) -> None:
    print(f"Client connected: {ws.remote_address}")
    await ws.send(WELCOME)
    t0 = time.monotonic()
    seq = 0
    while True:
        await ws.send(make_line(time.monotonic() - t0, seq))
        seq += 1
        await asyncio.sleep(1.0 / rate_hz)


async def serve_forever(host: str = "0.0.0.0", port: int = 8081) -> None:
    async with serve(stream, host, port) as server:
        print(f"Listening on ws://{host}:{port}/ws  (Ctrl-C to stop)")
        await server.serve_forever()


if __name__ == "__main__":
    try:
        asyncio.run(serve_forever())
    except KeyboardInterrupt:
        print("\nShutting down.")
