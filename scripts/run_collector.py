#!/usr/bin/env python3
"""Run the collector against a Signal K MQTT gateway.

Configuration comes from ``SAILLOGGER_*`` environment variables; the
command-line options below override the most common ones. Status lines are
printed every status interval until Ctrl+C.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysaillogger import Collector, CollectorConfig, SailLoggerConfigError  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Saillogger telemetry collector.",
    )
    parser.add_argument(
        "--collector-id",
        help="Collector id (default: SAILLOGGER_COLLECTOR_ID).",
    )
    parser.add_argument(
        "--mqtt-host",
        help="Signal K MQTT gateway host (default: SAILLOGGER_MQTT_HOST).",
    )
    parser.add_argument(
        "--mqtt-port",
        type=int,
        help="Signal K MQTT gateway port.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory of the local SQLite buffer.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(config: CollectorConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop.set)

    async with Collector(config, on_status=lambda message: print(f"[collector] {message}")):
        await stop.wait()


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "collector_id": args.collector_id,
        "mqtt_host": args.mqtt_host,
        "mqtt_port": args.mqtt_port,
        "data_dir": args.data_dir,
    }
    try:
        config = CollectorConfig.from_env(**{key: value for key, value in overrides.items() if value is not None})
    except SailLoggerConfigError as exc:
        print(f"[collector] {exc}", file=sys.stderr)
        return 2

    if not config.mqtt_host:
        print("[collector] No MQTT host configured; the collector will only publish what it is fed.")
    asyncio.run(_run(config))
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
